from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from eth_utils import is_address

from securenotes.domain.network import DEFAULT_CONTRACT_ADDRESS, NetworkConfig

from ..utils.logging import env_requests_debug

DEFAULT_PROVIDER_URL = "http://127.0.0.1:1248"


@dataclass
class SettingsConfig:
    """Typed runtime settings that persist via StorageLocal."""

    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    provider_url: str = DEFAULT_PROVIDER_URL
    request_timeout_s: int = 10
    receipt_poll_ms: int = 1000
    refresh_delays_ms: Tuple[int, ...] = (2000, 4000)
    account_poll_ms: int = 1500
    dispatch_gas_limit: int = 500_000
    network: NetworkConfig = field(default_factory=NetworkConfig)


_INT_FIELDS = {
    "request_timeout_s",
    "receipt_poll_ms",
    "account_poll_ms",
    "dispatch_gas_limit",
}


class SettingsVM:
    """Keeps app settings UI state and validation, no I/O here."""

    def __init__(
        self,
        *,
        config: Optional[SettingsConfig] = None,
        on_run_diagnostics: Optional[Callable[[], None]] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or SettingsConfig()
        self.on_run_diagnostics = on_run_diagnostics
        self.on_save = on_save
        self.debug_logging: bool = env_requests_debug()

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def contract_address(self) -> str:
        return self.config.contract_address

    @contract_address.setter
    def contract_address(self, value: str) -> None:
        self.config = replace(self.config, contract_address=self._coerce_str("contract_address", value))

    @property
    def provider_url(self) -> str:
        return self.config.provider_url

    @provider_url.setter
    def provider_url(self, value: str) -> None:
        self.config = replace(self.config, provider_url=self._coerce_str("provider_url", value))

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: int) -> None:
        self.config = replace(self.config, request_timeout_s=self._coerce_int("request_timeout_s", value))

    @property
    def receipt_poll_ms(self) -> int:
        return self.config.receipt_poll_ms

    @receipt_poll_ms.setter
    def receipt_poll_ms(self, value: int) -> None:
        self.config = replace(self.config, receipt_poll_ms=self._coerce_int("receipt_poll_ms", value))

    @property
    def refresh_delays_ms(self) -> Tuple[int, ...]:
        return self.config.refresh_delays_ms

    @refresh_delays_ms.setter
    def refresh_delays_ms(self, value: Any) -> None:
        self.config = replace(self.config, refresh_delays_ms=self._coerce_delays(value))

    @property
    def account_poll_ms(self) -> int:
        return self.config.account_poll_ms

    @property
    def dispatch_gas_limit(self) -> int:
        return self.config.dispatch_gas_limit

    @property
    def network(self) -> NetworkConfig:
        return self.config.network

    # ------------------------------------------------------------------
    def is_valid(self) -> bool:
        if not is_address(self.contract_address):
            return False
        if not self.provider_url:
            return False
        return all(value > 0 for value in (self.request_timeout_s, self.receipt_poll_ms))

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted settings to the view-model."""

        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed = {f.name for f in fields(SettingsConfig)} | {"debug_logging"}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")

        updates: Dict[str, Any] = {}
        for f in fields(SettingsConfig):
            if f.name in payload:
                updates[f.name] = self._coerce_config_value(f.name, payload[f.name])
        if updates:
            self.config = replace(self.config, **updates)

        if "debug_logging" in payload:
            self.debug_logging = self._coerce_bool(payload["debug_logging"])

    def to_dict(self) -> dict:
        snapshot = asdict(self.config)
        snapshot["refresh_delays_ms"] = list(self.config.refresh_delays_ms)
        snapshot["debug_logging"] = bool(self.debug_logging)
        return snapshot

    def set_debug_logging(self, enabled: bool) -> None:
        self.debug_logging = self._coerce_bool(enabled)

    def cmd_save(self) -> None:
        if not self.is_valid():
            raise ValueError("Settings invalid")
        if self.on_save:
            self.on_save(self.to_dict())

    def cmd_run_diagnostics(self) -> None:
        if self.on_run_diagnostics:
            self.on_run_diagnostics()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _coerce_config_value(self, key: str, raw: Any) -> Any:
        if key in ("contract_address", "provider_url"):
            return self._coerce_str(key, raw)
        if key in _INT_FIELDS:
            return self._coerce_int(key, raw)
        if key == "refresh_delays_ms":
            return self._coerce_delays(raw)
        if key == "network":
            return self._coerce_network(raw)
        raise ValueError(f"Unhandled config field: {key}")

    @staticmethod
    def _coerce_str(name: str, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string.")
        return value.strip()

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, allow_negative: bool = False) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if not allow_negative and coerced < 0:
            raise ValueError(f"{name} must be non-negative.")
        return coerced

    def _coerce_delays(self, value: Any) -> Tuple[int, ...]:
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise ValueError("refresh_delays_ms must be a list of integers.")
        return tuple(self._coerce_int("refresh_delays_ms", item) for item in value)

    def _coerce_network(self, value: Any) -> NetworkConfig:
        if isinstance(value, NetworkConfig):
            return value
        if not isinstance(value, Mapping):
            raise ValueError("network must be a mapping.")
        known = {f.name for f in fields(NetworkConfig)}
        unknown = set(value.keys()) - known
        if unknown:
            raise ValueError(f"Unsupported network keys: {', '.join(sorted(str(k) for k in unknown))}")
        updates = dict(value)
        if "chain_id" in updates:
            raw = updates["chain_id"]
            if isinstance(raw, str) and raw.strip().lower().startswith("0x"):
                updates["chain_id"] = int(raw.strip(), 16)
            else:
                updates["chain_id"] = self._coerce_int("network.chain_id", raw)
        if "currency_decimals" in updates:
            updates["currency_decimals"] = self._coerce_int(
                "network.currency_decimals", updates["currency_decimals"]
            )
        return replace(self.config.network, **updates)


def default_settings_payload() -> dict:
    """Return a fresh snapshot containing the default settings payload."""
    return SettingsVM().to_dict()
