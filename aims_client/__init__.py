from aims_client.aims import AIMS_SERVICE_NAME, AimsClient
from aims_client.domain.descriptor import RequestDescriptor
from aims_client.domain.ports.al_client import AlClientProtocol
from aims_client.infra.http.al_client import AlApiClient, ApiError

__all__ = [
    "AIMS_SERVICE_NAME",
    "AimsClient",
    "AlApiClient",
    "AlClientProtocol",
    "ApiError",
    "RequestDescriptor",
]
