"""网络工具：下载 URL 校验"""

from __future__ import annotations

from urllib.parse import urlparse

from fipsbuild.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("https",))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验固定工具链 URL 仅使用 https

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.netloc:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL '{url}'{label}，仅支持 https 下载"
        )
