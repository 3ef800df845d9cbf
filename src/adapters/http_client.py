"""Cliente httpx para la API de Satellite.

Por qué un builder:
- Crea un único `httpx.AsyncClient` por ejecución con Basic auth, la
  configuración TLS y la preferencia de familia de direcciones aplicadas.
- El pool mantiene una sola conexión ociosa; cada request paginada se lee
  completa y se cierra antes de emitir la siguiente.
- Los tests inyectan un `httpx.MockTransport` o un router respx vía
  `transport`.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from types import TracebackType

import httpx

from core.config import AppSettings, NetworkType

CONTENT_TYPE = "application/json;charset=utf-8"

_LOCAL_ADDRESS_BY_NETWORK: dict[NetworkType, str | None] = {
    NetworkType.AUTO: None,
    NetworkType.TCP4: "0.0.0.0",
    NetworkType.TCP6: "::",
}


@dataclass
class APIAuthInfo:
    server: str
    port: int = 443
    username: str = ""
    password: str = field(default="", repr=False)
    user_agent: str = ""
    read_limit: int = 1_048_576
    network_type: NetworkType = NetworkType.AUTO
    ca_cert: bytes | None = field(default=None, repr=False)
    trust_cert: bool = False
    permit_tls_renegotiation: bool = False


@dataclass
class APILimits:
    per_page: int = 100


@dataclass
class APIClient:
    """Cliente HTTP más los datos de auth y límites para llamar a la API."""

    http: httpx.AsyncClient
    auth: APIAuthInfo
    limits: APILimits = field(default_factory=APILimits)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def load_ca_cert(settings: AppSettings) -> bytes | None:
    """Lee el CA bundle configurado y verifica que OpenSSL lo acepte.

    Lanza `OSError` (incluye `ssl.SSLError`) o `ValueError` si el archivo
    no se puede leer o no contiene un certificado PEM usable.
    """

    ca_cert = settings.read_ca_cert()
    if ca_cert is not None:
        ssl.create_default_context(cadata=ca_cert.decode("utf-8"))
    return ca_cert


def build_ssl_context(auth: APIAuthInfo) -> ssl.SSLContext:
    """TLS: raíces del sistema, un CA bundle dado o sin verificación."""

    if auth.ca_cert is not None:
        context = ssl.create_default_context(cadata=auth.ca_cert.decode("utf-8"))
    else:
        context = ssl.create_default_context()

    if auth.trust_cert:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    # OpenSSL solo permite renegociación hasta TLS 1.2.
    if auth.permit_tls_renegotiation:
        context.maximum_version = ssl.TLSVersion.TLSv1_2
    elif hasattr(ssl, "OP_NO_RENEGOTIATION"):
        context.options |= ssl.OP_NO_RENEGOTIATION

    return context


def auth_info_from_settings(settings: AppSettings, *, ca_cert: bytes | None = None) -> APIAuthInfo:
    return APIAuthInfo(
        server=settings.server,
        port=settings.port,
        username=settings.username,
        password=settings.password.get_secret_value(),
        user_agent=settings.user_agent,
        read_limit=settings.read_limit,
        network_type=settings.network_type,
        ca_cert=ca_cert,
        trust_cert=settings.trust_cert,
        permit_tls_renegotiation=settings.permit_tls_renegotiation,
    )


def build_async_client(
    auth: APIAuthInfo,
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea el `httpx.AsyncClient` usado en cada request a la API."""

    headers: dict[str, str] = {"Content-Type": CONTENT_TYPE}
    if auth.user_agent:
        headers["User-Agent"] = auth.user_agent

    if transport is None:
        transport = httpx.AsyncHTTPTransport(
            verify=build_ssl_context(auth),
            local_address=_LOCAL_ADDRESS_BY_NETWORK[auth.network_type],
            limits=httpx.Limits(
                max_connections=1,
                max_keepalive_connections=1,
                keepalive_expiry=30.0,
            ),
        )

    return httpx.AsyncClient(
        auth=httpx.BasicAuth(auth.username, auth.password),
        headers=headers,
        timeout=httpx.Timeout(timeout),
        transport=transport,
    )


def build_api_client(
    settings: AppSettings,
    *,
    ca_cert: bytes | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> APIClient:
    auth = auth_info_from_settings(settings, ca_cert=ca_cert)
    return APIClient(
        http=build_async_client(auth, timeout=timeout, transport=transport),
        auth=auth,
        limits=APILimits(per_page=settings.per_page),
    )
