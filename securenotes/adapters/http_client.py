"""HTTP transport shared by the JSON-RPC wallet provider adapter.

Reads and interactive prompts travel over the same ``requests.Session`` but
follow different policies: reads are bounded by a timeout and retried on
transport failures, while prompts wait on the user and are sent exactly once.

Used by:
    ``securenotes/adapters/wallet_rpc.py``. Use cases never see this module;
    they talk to ``WalletPort``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from securenotes.adapters.rpc_errors import RpcTimeoutError


@dataclass
class HttpConfig:
    """Transport policy for provider calls.

    Attributes:
        request_timeout_s: Per-attempt timeout for reads, in seconds.
        retries: Extra read attempts after a timeout or refused connection.
    """
    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """Persistent ``requests`` session with a read retry loop.

    Signature prompts, transaction dispatch and network switching block on a
    human, so they are never retried and carry no client timeout. Status code
    handling is left to the caller.
    """

    def __init__(self, cfg: HttpConfig) -> None:
        self.session = requests.Session()
        self.cfg = cfg

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    def post(
        self,
        url: str,
        *,
        json_body: Dict[str, Any],
        interactive: bool = False,
    ) -> requests.Response:
        """POST ``json_body`` as JSON to ``url``.

        Args:
            url: Provider endpoint.
            json_body: JSON-RPC request object.
            interactive: Send once and wait as long as the user needs.

        Returns:
            The first response that arrived, whatever its status code.

        Raises:
            RpcTimeoutError: Every attempt timed out or could not connect.
        """
        context = f"POST {url}"
        data = json.dumps(json_body)
        attempts = 1 if interactive else self.cfg.retries + 1
        timeout: Optional[int] = None if interactive else self.cfg.request_timeout_s
        last_err: Optional[RpcTimeoutError] = None
        for _ in range(attempts):
            try:
                return self.session.post(
                    url,
                    data=data,
                    headers=self._headers(),
                    timeout=timeout,
                )
            except (req_exc.Timeout, req_exc.ConnectionError) as exc:
                last_err = RpcTimeoutError(f"Timeout contacting {url}: {exc}", context=context)
        raise last_err


__all__ = ["HttpConfig", "RetryingSession"]
