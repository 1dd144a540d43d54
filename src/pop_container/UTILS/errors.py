# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Error types shared by the provisioning pipeline.

Every failure is reduced to one of four kinds for diagnostics. Callers never
branch on the kind; it only appears in log output.
"""
from enum import Enum
from typing import List, Optional, Sequence


class ErrorKind(str, Enum):
    """
    Broad classes of failure the pipeline can encounter.
    """
    IO = "io"
    ENCODING = "encoding"
    COLLABORATOR = "collaborator"
    IDENTITY = "identity"

    @classmethod
    def classify(cls, exc: BaseException) -> "ErrorKind":
        """
        Maps an arbitrary exception onto an error kind.

        :param exc: The exception to classify.
        :return: The matching ErrorKind.
        """
        if isinstance(exc, PopContainerError):
            return exc.kind
        if isinstance(exc, UnicodeDecodeError):
            return cls.ENCODING
        if isinstance(exc, OSError):
            return cls.IO
        return cls.COLLABORATOR


class PopContainerError(Exception):
    """
    Base class for errors raised by this package.
    """
    kind = ErrorKind.COLLABORATOR


class CommandError(PopContainerError):
    """
    An external process exited with a non-zero status.
    """
    kind = ErrorKind.COLLABORATOR

    def __init__(self, command: Sequence[str], returncode: int, output: Optional[str] = None):
        self.command: List[str] = list(command)
        self.returncode = returncode
        self.output = output
        message = f"'{' '.join(self.command)}' exited with status {returncode}"
        if output:
            message += f": {output.strip()}"
        super().__init__(message)


class ConfigError(PopContainerError):
    """
    The build configuration could not be loaded or failed validation.
    """
    kind = ErrorKind.IO


class IdentityError(PopContainerError):
    """
    The invoking user could not be determined.
    """
    kind = ErrorKind.IDENTITY


class PipelineError(PopContainerError):
    """
    Raised when a pipeline stage fails. Identifies the stage and wraps the cause.
    """

    def __init__(self, stage, cause: BaseException):
        self.stage = stage
        self.cause = cause
        self.kind = ErrorKind.classify(cause)
        super().__init__(f"stage '{stage.value}' failed ({self.kind.value}): {cause}")
