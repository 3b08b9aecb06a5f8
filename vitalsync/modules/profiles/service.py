from vitalsync.modules.profiles.store import MongoProfileStore, MongoRoleStore

profile_store = MongoProfileStore()
role_store = MongoRoleStore()


def get_profile_store() -> MongoProfileStore:
    return profile_store


def get_role_store() -> MongoRoleStore:
    return role_store
