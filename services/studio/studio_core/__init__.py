from .config import StudioSettings
from .errors import StudioError
from .gateway import ModelGateway
from .service import (
    analyze_keywords,
    create_gateway_from_env,
    create_store_from_env,
    extract_resume,
    generate_summary,
    optimize_resume,
    refine_description,
    review_resume,
    scan_resume,
    store_for_user,
)
from .workspace import ProjectManager, Workspace

__all__ = [
    "StudioError",
    "StudioSettings",
    "ModelGateway",
    "create_gateway_from_env",
    "create_store_from_env",
    "store_for_user",
    "optimize_resume",
    "generate_summary",
    "refine_description",
    "analyze_keywords",
    "review_resume",
    "scan_resume",
    "extract_resume",
    "Workspace",
    "ProjectManager",
]
