"""
Storage Key Builder

Namespaced keys for every record type the engine persists.
"""

DEFAULT_USER_ID = "default_user"


class StorageKeys:
    """
    Builds the storage keys for a user.

    Session and progress keys always embed the user id. The age detection
    and recommendation ledger keys are unscoped for the default user and get
    a ``_<user_id>`` suffix for everyone else, so several users can share
    one store.
    """

    SESSIONS = "performance_sessions"
    PROGRESS = "progress"
    AGE_DETECTION = "ageDetectionResult"
    IMPLEMENTED_RECOMMENDATIONS = "implementedRecommendations"

    @staticmethod
    def build(*parts: str) -> str:
        """Join key parts with underscores."""
        return "_".join(str(part) for part in parts if part)

    @classmethod
    def sessions(cls, user_id: str) -> str:
        return cls.build(cls.SESSIONS, user_id)

    @classmethod
    def progress(cls, user_id: str) -> str:
        return cls.build(cls.PROGRESS, user_id)

    @classmethod
    def age_detection(cls, user_id: str) -> str:
        return cls._unscoped(cls.AGE_DETECTION, user_id)

    @classmethod
    def implemented_recommendations(cls, user_id: str) -> str:
        return cls._unscoped(cls.IMPLEMENTED_RECOMMENDATIONS, user_id)

    @classmethod
    def _unscoped(cls, base: str, user_id: str) -> str:
        if user_id == DEFAULT_USER_ID:
            return base
        return cls.build(base, user_id)
