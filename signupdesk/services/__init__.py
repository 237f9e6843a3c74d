from signupdesk.services.activities_api import ActivitiesApi, ApiResponse
from signupdesk.services.auth import AuthGateway
from signupdesk.services.mutations import MutationController
from signupdesk.services.roster import RosterSynchronizer

__all__ = [
    "ActivitiesApi",
    "ApiResponse",
    "AuthGateway",
    "MutationController",
    "RosterSynchronizer",
]
