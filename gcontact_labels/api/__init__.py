"""
gcontact_labels.api - Google People API access

Contains the People API wrapper and the labeling service built on it.
"""

from gcontact_labels.api.google_labeling import GooglePeopleLabelingService
from gcontact_labels.api.people_api import PeopleAPI, PeopleAPIError, RateLimitError

__all__ = [
    "GooglePeopleLabelingService",
    "PeopleAPI",
    "PeopleAPIError",
    "RateLimitError",
]
