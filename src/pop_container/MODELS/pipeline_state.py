"""
Models for the ephemeral state of a single pipeline run.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class Stage(str, Enum):
    """
    Stages of the image lifecycle, in execution order.
    """
    CREATE = "create"
    MOUNT = "mount"
    BOOTSTRAP = "bootstrap"
    PROVISION = "provision"
    COMMIT = "commit"
    EXPORT = "export"


class PipelineState(BaseModel):
    """
    Handles produced by the stages of one run. Each is set once by the stage
    that produces it.
    """
    image_id: Optional[str] = None
    mount_path: Optional[str] = None
    provisioned: bool = False
    committed_name: Optional[str] = None
    archive_path: Optional[str] = None
    completed: Optional[Stage] = None
