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
Execution of external commands with captured or streamed output.
"""
import logging
import subprocess
from typing import Callable, Dict, List, Optional, Sequence

from ..UTILS.errors import CommandError

logger = logging.getLogger(__name__)


class CommandRunner:
    """
    Runs external commands synchronously. Commands are always passed as an
    argument list and never through a shell.
    """
    def __init__(self, on_line: Optional[Callable[[str], None]] = None):
        """
        Initializes the command runner.

        Args:
            on_line (Optional[Callable[[str], None]]): Receives each output line of
                a watched command. Defaults to logging it at INFO level.
        """
        self.on_line = on_line or logger.info

    def run(self, command: Sequence[str], env: Optional[Dict[str, str]] = None) -> str:
        """
        Runs a command to completion and returns its standard output.

        Args:
            command (Sequence[str]): Command and arguments to execute.
            env (Optional[Dict[str, str]]): Environment for the process.

        Returns:
            str: Decoded stdout with one trailing newline removed.

        Raises:
            OSError: If the command could not be started.
            UnicodeDecodeError: If the output is not valid UTF-8.
            CommandError: If the command exits non-zero.
        """
        argv = list(command)
        logger.debug("Running: %s", " ".join(argv))
        result = subprocess.run(
            argv,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            shell=False,
        )
        if result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr.decode("utf-8", errors="replace"))

        output = result.stdout.decode("utf-8")
        if output.endswith("\n"):
            output = output[:-1]
        return output

    def watch(self, command: Sequence[str], env: Optional[Dict[str, str]] = None) -> None:
        """
        Runs a command, forwarding each line of its output as soon as it is
        written. Stderr is merged into stdout.

        Args:
            command (Sequence[str]): Command and arguments to execute.
            env (Optional[Dict[str, str]]): Environment for the process.

        Raises:
            OSError: If the command could not be started.
            CommandError: If the command exits non-zero.
        """
        argv: List[str] = list(command)
        logger.debug("Watching: %s", " ".join(argv))
        process = subprocess.Popen(
            argv,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            shell=False,
        )
        with process:
            for raw in process.stdout:
                self.on_line(raw.decode("utf-8", errors="replace").rstrip("\n"))
            returncode = process.wait()

        if returncode != 0:
            raise CommandError(argv, returncode)
