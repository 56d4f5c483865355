import pytest

from sidekick import server


@pytest.fixture(autouse=True)
def no_services(monkeypatch):
    monkeypatch.setattr(server, "services", None)


@pytest.mark.asyncio
async def test_tools_refuse_before_initialization():
    assert await server.ask_repository("What does this do?") == server.NOT_INITIALIZED
    assert await server.index_repository("https://github.com/acme/web.git") == server.NOT_INITIALIZED
    assert server.get_dependency_graph("acme_web") == server.NOT_INITIALIZED
    assert server.health_check() == server.NOT_INITIALIZED
