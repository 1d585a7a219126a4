"""Pre and post processors, collected under the bare processor contracts."""
from domain.contracts import IRequestPostProcessor, IRequestPreProcessor, TRequest
from tests.fixtures.handlers.messages import AsyncPing, Ping, Pong


class PingPreProcessor(IRequestPreProcessor[Ping]):
    async def process(self, request: Ping) -> None:
        pass


class AsyncPingPreProcessor(IRequestPreProcessor[AsyncPing]):
    async def process(self, request: AsyncPing) -> None:
        pass


class GenericPreProcessor(IRequestPreProcessor[TRequest]):
    async def process(self, request) -> None:
        pass


class PingPostProcessor(IRequestPostProcessor[Ping, Pong]):
    async def process(self, request: Ping, response: Pong) -> None:
        pass
