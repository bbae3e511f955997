import asyncio
from abc import ABC, abstractmethod

from ip_helper.errors import MalformedAddressError
from ip_helper.logger import logger
from ip_helper.service import IpInfoService

CRLF = b"\r\n"
FTP_BANNER_CODE = b"220"


class RawSocketFront(ABC):
    """Answer-and-close TCP front: every connection gets one JSON reply.

    Nothing is read from the client. On accept the peer address is resolved,
    geolocated and written back in this front's framing, then the connection
    is closed. Each connection runs in its own asyncio task; a failure only
    drops that connection, never the listener.
    """

    name = "raw"

    def __init__(self, service: IpInfoService, write_timeout: float = 10.0) -> None:
        self._service = service
        self._write_timeout = write_timeout

    @abstractmethod
    def frame(self, payload: bytes) -> bytes:
        """Wrap the JSON payload in this transport's wire framing."""
        raise NotImplementedError

    async def handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peername = writer.get_extra_info("peername")
        try:
            result = await self._service.describe_peer(peername)
            writer.write(self.frame(result.model_dump_json().encode("utf-8")))
            await asyncio.wait_for(writer.drain(), timeout=self._write_timeout)
            logger.info(f"Answered {self.name} connection peer={peername} ip={result.ip}")
        except MalformedAddressError as exc:
            logger.warning(f"Dropping {self.name} connection with malformed peer address peer={peername!r} error={exc}")
        except (ConnectionError, asyncio.TimeoutError) as exc:
            logger.warning(f"Failed to send {self.name} reply peer={peername!r} error={exc!r}")
        except Exception as exc:
            logger.exception(f"Unhandled exception in {self.name} connection peer={peername!r}: {exc!r}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError as exc:
                logger.debug(f"Connection reset while closing {self.name} peer={peername!r} error={exc!r}")

    async def start(self, host: str, port: int) -> asyncio.Server:
        server = await asyncio.start_server(self.handle_connection, host, port)
        addresses = ", ".join(str(sock.getsockname()) for sock in server.sockets)
        logger.info(f"{self.name} server listening on {addresses}")
        return server


class TelnetFront(RawSocketFront):
    """``{"ip":"...","info":[...]}\\r\\n``"""

    name = "telnet"

    def frame(self, payload: bytes) -> bytes:
        return payload + CRLF


class FtpBannerFront(RawSocketFront):
    """FTP-style greeting carrying the JSON answer: ``220 {...} \\r\\n``."""

    name = "ftp"

    def frame(self, payload: bytes) -> bytes:
        return b" ".join([FTP_BANNER_CODE, payload, CRLF])
