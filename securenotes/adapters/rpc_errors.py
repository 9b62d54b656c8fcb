from __future__ import annotations

from typing import Any, Optional

# EIP-1193 / EIP-1474 provider error codes the client reacts to.
USER_REJECTED = 4001
UNRECOGNIZED_CHAIN = 4902
EXECUTION_ERROR = 3


class RpcError(RuntimeError):
    """Base class for wallet/JSON-RPC adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        data: Any = None,
        status: Optional[int] = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data
        self.status = status
        self.context = context

    @property
    def user_rejected(self) -> bool:
        if self.code == USER_REJECTED:
            return True
        text = str(self).lower()
        return "user rejected" in text or "user denied" in text


class RpcHttpError(RpcError):
    """Non-2xx HTTP status from the provider endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        data: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, data=data, context=context)


class RpcTimeoutError(RpcError):
    """Transport level timeout or connectivity failure."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except Exception:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def error_from_rpc(error: Any, *, context: Optional[str] = None) -> RpcError:
    """Build an ``RpcError`` from a JSON-RPC ``error`` member."""
    if not isinstance(error, dict):
        return RpcError(stringify(error) or "Provider error", context=context)
    code = error.get("code")
    try:
        code = int(code) if code is not None else None
    except (TypeError, ValueError):
        code = None
    message = first_string(error) or "Provider error"
    reason = revert_reason(error.get("data"))
    if reason and reason not in message:
        message = f"{message}: {reason}"
    return RpcError(message, code=code, data=error.get("data"), context=context)


def revert_reason(data: Any) -> Optional[str]:
    """Pull a human-readable revert reason out of nested error ``data``."""
    if isinstance(data, str):
        text = data.strip()
        if not text or text.startswith("0x"):
            return None
        return text
    if isinstance(data, dict):
        for key in ("reason", "message"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return revert_reason(data.get("data"))
    return None


def first_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        text = payload.strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("message", "detail", "error", "reason"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, (dict, list)):
                candidate = first_string(value)
                if candidate:
                    return candidate
    if isinstance(payload, list):
        for item in payload:
            candidate = first_string(item)
            if candidate:
                return candidate
    return None


def stringify(data: Any, *, limit: int = 200) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, str):
        cleaned = data.strip()
        return cleaned[:limit] if cleaned else None
    if isinstance(data, dict):
        pairs = []
        for key, value in list(data.items())[:4]:
            value_text = stringify(value, limit=limit)
            if value_text:
                pairs.append(f"{key}={value_text}")
        if not pairs:
            return None
        return ", ".join(pairs)[:limit]
    text = str(data).strip()
    return text[:limit] if text else None


__all__ = [
    "EXECUTION_ERROR",
    "RpcError",
    "RpcHttpError",
    "RpcTimeoutError",
    "UNRECOGNIZED_CHAIN",
    "USER_REJECTED",
    "error_from_rpc",
    "first_string",
    "parse_error_payload",
    "revert_reason",
    "stringify",
]
