from ip_helper.models.identity import Identity
from ip_helper.net import is_private


def resolve_identity(
    observed_address: str,
    forwarded_for: str | None = None,
    real_ip_header: str | None = None,
) -> Identity:
    """Work out who the caller really is from the transport address and proxy hints.

    The rules are applied in a fixed order and later rules win:

    1. Without hints the observed address is the real IP.
    2. X-Forwarded-For: the leftmost hop is the real IP. With more than one hop
       the caller is behind a proxy, and the rightmost hop (the one closest to
       us) is recorded as the proxy.
    3. X-Real-IP, when it disagrees with the real IP computed so far, wins. The
       address it displaces becomes the proxy IP, replacing whatever step 2
       recorded.
    4. A caller connecting from a private range is always flagged as proxied
       (NAT, load balancer, sidecar).

    Raw-socket transports call this with no hints at all.
    """
    real_ip = observed_address
    proxy_ip = ""
    is_proxy = False

    if forwarded_for:
        hops = [hop.strip() for hop in forwarded_for.split(",")]
        real_ip = hops[0]
        if len(hops) > 1:
            is_proxy = True
            proxy_ip = hops[-1]

    if real_ip_header and real_ip_header != real_ip:
        is_proxy = True
        proxy_ip = real_ip
        real_ip = real_ip_header

    if is_private(observed_address):
        is_proxy = True

    return Identity(
        observed_address=observed_address,
        real_ip=real_ip,
        proxy_ip=proxy_ip,
        is_proxy=is_proxy,
        forwarded_chain_raw=forwarded_for or "",
    )
