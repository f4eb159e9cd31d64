LOCAL_SENTINEL = "local-dev"
LOOPBACK_ADDRESSES = frozenset({"::1", "127.0.0.1", "localhost"})
IPV4_MAPPED_PREFIX = "::ffff:"


def normalize_address(ip: str | None) -> str:
    """
    Strip the IPv4-mapped IPv6 prefix and collapse loopback forms
    to the local-dev sentinel.
    """
    ip = (ip or "").strip()
    if ip.startswith(IPV4_MAPPED_PREFIX):
        ip = ip[len(IPV4_MAPPED_PREFIX):]
    if ip in LOOPBACK_ADDRESSES:
        return LOCAL_SENTINEL
    return ip


def resolve_client_address(headers, peer_address: str | None) -> str:
    """
    Best-effort client address from proxy headers.

    Priority: CF-Connecting-IP (Cloudflare), X-Real-IP, first entry of
    X-Forwarded-For, then the transport peer address.
    """
    lowered = {k.lower(): v for k, v in headers.items()}

    cf_connecting_ip = (lowered.get("cf-connecting-ip") or "").strip()
    real_ip = (lowered.get("x-real-ip") or "").strip()
    forwarded_for = lowered.get("x-forwarded-for") or ""

    if cf_connecting_ip:
        ip = cf_connecting_ip
    elif real_ip:
        ip = real_ip
    elif forwarded_for.strip():
        # client first, then each proxy hop
        ip = forwarded_for.split(",")[0].strip()
    else:
        ip = peer_address or ""

    return normalize_address(ip)
