from fastapi import Depends

from unistay.db.connection_store import MongoConnectionRequestStore
from unistay.db.mongo import get_connection_requests_collection, get_profiles_collection
from unistay.db.profile_store import MongoProfileStore
from unistay.matching.connections import ConnectionWorkflow


def get_profile_store() -> MongoProfileStore:
    return MongoProfileStore(get_profiles_collection())


def get_connection_store() -> MongoConnectionRequestStore:
    return MongoConnectionRequestStore(get_connection_requests_collection())


def get_connection_workflow(
    requests: MongoConnectionRequestStore = Depends(get_connection_store),
    profiles: MongoProfileStore = Depends(get_profile_store),
) -> ConnectionWorkflow:
    return ConnectionWorkflow(requests, profiles)
