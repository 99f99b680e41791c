"""Pure helpers rendering payment descriptions and callback URLs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote


@dataclass(frozen=True)
class PaymentLinkTemplates:
    base_url: str
    return_path: str = "/payment/success?order_id={order_id}"
    cancel_path: str = "/payment/cancel?order_id={order_id}"
    description_template: str = "Thanh toan don hang #{order_number}"

    def description(self, **params: Any) -> str:
        return render(self.description_template, **params)

    def return_url(self, **params: Any) -> str:
        return join_url(self.base_url, render(self.return_path, **_quoted(params)))

    def cancel_url(self, **params: Any) -> str:
        return join_url(self.base_url, render(self.cancel_path, **_quoted(params)))


def render(template: str, **params: Any) -> str:
    return template.format(**params)


def join_url(base_url: str, path: str) -> str:
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _quoted(params: dict[str, Any]) -> dict[str, str]:
    return {k: quote(str(v), safe="") for k, v in params.items()}
