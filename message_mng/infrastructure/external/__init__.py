# External service clients
from .identity_platform_client import IdentityPlatformClient
from .project_service_client import ProjectServiceClient

__all__ = [
    'IdentityPlatformClient',
    'ProjectServiceClient',
]
