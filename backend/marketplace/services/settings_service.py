"""Settings Service - Platform-wide configuration (commission, maintenance, registration)"""
from typing import Any, Dict, Optional

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from ..config.settings import settings
from ..domain.models import ActorContext
from ..domain.enums import Role, SettingKey, STAFF_ROLES
from ..domain.errors import ConflictError, ForbiddenError, ValidationError
from ..repositories.record_store import RecordStore
from ..repositories.settings_repo import SettingsRepository
from ..utils.idgen import generate_registration_key
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _format_rate(rate: float) -> str:
    return format(rate, "g")


def default_values() -> Dict[str, str]:
    """Initial values used to seed the settings document"""
    return {
        SettingKey.DEFAULT_COMMISSION_RATE.value: _format_rate(settings.default_commission_rate),
        SettingKey.MAINTENANCE_MODE.value: "true" if settings.maintenance_mode else "false",
        SettingKey.SUPPLIER_REGISTRATION_KEY.value: (
            settings.supplier_registration_key or generate_registration_key()
        ),
    }


def normalize_value(key: str, value: Any) -> str:
    """
    Validate one setting and return its stored string form

    Raises:
        ValidationError: Unknown key or bad value
    """
    try:
        setting = SettingKey(key)
    except ValueError:
        raise ValidationError(
            f"Unknown setting '{key}'",
            details={"key": key, "known_keys": [k.value for k in SettingKey]}
        )

    if setting == SettingKey.DEFAULT_COMMISSION_RATE:
        try:
            rate = float(value)
        except (TypeError, ValueError):
            rate = -1.0
        if isinstance(value, bool) or not rate >= 0 or rate == float("inf"):
            raise ValidationError(
                "default_commission_rate must be a non-negative number",
                details={"key": key, "value": str(value)}
            )
        return _format_rate(rate)

    if setting == SettingKey.MAINTENANCE_MODE:
        if isinstance(value, bool):
            return "true" if value else "false"
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return "true"
        if text in _FALSE_VALUES:
            return "false"
        raise ValidationError(
            "maintenance_mode must be 'true' or 'false'",
            details={"key": key, "value": str(value)}
        )

    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError("supplier_registration_key must not be empty", details={"key": key})
    return text


class SettingsService:
    """
    Service for the platform settings map

    The map lives in the record store as a single versioned document. Reads
    seed it from configuration defaults on first use; writes are
    compare-and-set on the document version.
    """

    def __init__(self, store: RecordStore, max_attempts: Optional[int] = None):
        self.repo = SettingsRepository(store)
        self.max_attempts = max_attempts or settings.settings_update_attempts

    def _load(self) -> Dict[str, Any]:
        doc = self.repo.get_document()
        if doc is None:
            doc = self.repo.create_document(default_values(), utc_now())
            logger.info("Seeded platform settings from configuration defaults")
        return doc

    def get_settings(self) -> Dict[str, str]:
        """Current settings, every known key present"""
        values = dict(self._load()["values"])
        for key, value in default_values().items():
            values.setdefault(key, value)
        return values

    def get_settings_for(self, actor: ActorContext) -> Dict[str, str]:
        """Settings as seen by staff"""
        self._require_staff(actor, "read settings")
        return self.get_settings()

    def update_settings(self, changes: Dict[str, Any], actor: ActorContext) -> Dict[str, str]:
        """
        Merge `changes` into the settings map

        A lost compare-and-set re-reads the document and tries again, up to
        `max_attempts` times.

        Raises:
            ForbiddenError: Actor is not staff, or a manager changes maintenance_mode
            ValidationError: Unknown key or bad value
            ConflictError: Concurrent writers kept winning for every attempt
        """
        self._require_staff(actor, "update settings")
        if not changes:
            raise ValidationError("No settings to update")
        normalized = {key: normalize_value(key, value) for key, value in changes.items()}

        retrying = Retrying(
            retry=retry_if_exception_type(ConflictError),
            stop=stop_after_attempt(self.max_attempts),
            before_sleep=self._log_conflict,
            reraise=True
        )
        for attempt in retrying:
            with attempt:
                updated = self._merge(normalized, actor)

        logger.info(
            f"Platform settings updated: {sorted(normalized)}",
            extra={"actor_id": actor.user_id}
        )
        return dict(updated["values"])

    def _merge(self, normalized: Dict[str, str], actor: ActorContext) -> Dict[str, Any]:
        doc = self._load()
        current = dict(doc["values"])

        maintenance_key = SettingKey.MAINTENANCE_MODE.value
        if (
            maintenance_key in normalized
            and normalized[maintenance_key] != current.get(maintenance_key)
            and actor.role != Role.ADMINISTRATOR
        ):
            raise ForbiddenError(
                "Only an administrator may change maintenance_mode",
                details={"key": maintenance_key, "role": actor.role.value}
            )

        return self.repo.update_values(
            {**current, **normalized},
            expected_version=doc["version"],
            updated_by=actor.user_id,
            now=utc_now()
        )

    def _log_conflict(self, retry_state: RetryCallState) -> None:
        logger.warning(f"Settings update conflict (attempt {retry_state.attempt_number}/{self.max_attempts})")

    def get_default_commission_rate(self) -> float:
        return float(self.get_settings()[SettingKey.DEFAULT_COMMISSION_RATE.value])

    def is_maintenance_mode(self) -> bool:
        return self.get_settings()[SettingKey.MAINTENANCE_MODE.value] == "true"

    def _require_staff(self, actor: ActorContext, operation: str) -> None:
        if actor.role not in STAFF_ROLES:
            raise ForbiddenError(
                f"Role '{actor.role.value}' may not {operation}",
                details={"operation": operation}
            )
