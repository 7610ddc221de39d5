import pytest
from lsprotocol.types import (
    DidSaveTextDocumentParams,
    TextDocumentIdentifier,
    MessageType,
)

from cfgpropsls.lsp.text_sync_manager import TextSyncManager


@pytest.fixture
def server():
    """Create a mock server for testing."""
    from unittest.mock import Mock

    server = Mock()
    server.window_log_message = Mock()
    return server


@pytest.fixture
def text_sync(server):
    """Create TextSyncManager instance."""
    return TextSyncManager(server)


def save_params(uri: str) -> DidSaveTextDocumentParams:
    return DidSaveTextDocumentParams(text_document=TextDocumentIdentifier(uri=uri))


@pytest.mark.asyncio
async def test_hook_registration(text_sync):
    """Test that hooks can be registered."""
    async def test_hook(params):
        pass

    text_sync.add_on_save_hook(test_hook)

    assert [s.hook for s in text_sync._subscriptions] == [test_hook]
    assert text_sync._subscriptions[0].suffixes == ()


@pytest.mark.asyncio
async def test_hook_execution(text_sync):
    """Test that registered hooks receive the saved document."""
    received_uris = []

    async def test_hook(params: DidSaveTextDocumentParams):
        received_uris.append(params.text_document.uri)

    text_sync.add_on_save_hook(test_hook)

    await text_sync._broadcast_on_save(
        save_params("file:///project/target/classes/META-INF/spring-configuration-metadata.json")
    )

    assert received_uris == [
        "file:///project/target/classes/META-INF/spring-configuration-metadata.json"
    ]


@pytest.mark.asyncio
async def test_multiple_hooks_execution_order(text_sync):
    """Test that multiple hooks run in registration order."""
    execution_order = []

    async def hook1(params):
        execution_order.append(1)

    async def hook2(params):
        execution_order.append(2)

    text_sync.add_on_save_hook(hook1)
    text_sync.add_on_save_hook(hook2)

    await text_sync._broadcast_on_save(save_params("file:///Mode.java"))

    assert execution_order == [1, 2]


@pytest.mark.asyncio
async def test_hook_error_isolation(text_sync, server):
    """Test that hook errors don't prevent other hooks from running."""
    hook2_called = False

    async def failing_hook(params):
        raise ValueError("Test error")

    async def successful_hook(params):
        nonlocal hook2_called
        hook2_called = True

    text_sync.add_on_save_hook(failing_hook)
    text_sync.add_on_save_hook(successful_hook)

    # Should not raise exception
    await text_sync._broadcast_on_save(save_params("file:///Mode.java"))

    assert hook2_called

    logged = server.window_log_message.call_args[0][0]
    assert logged.type == MessageType.Error
    assert "failing_hook" in logged.message
    assert "ValueError: Test error" in logged.message


def test_register_handlers(server):
    """Handlers are registered through the server's feature decorator."""
    registered = []

    def feature(method):
        registered.append(method)
        return lambda handler: handler

    server.feature = feature

    TextSyncManager(server).register_handlers()

    assert registered == ["textDocument/didSave"]


@pytest.mark.asyncio
async def test_hooks_filtered_by_suffix(text_sync):
    """Hooks registered with suffixes only see matching documents."""
    seen = []

    async def java_hook(params):
        seen.append(("java", params.text_document.uri))

    async def any_hook(params):
        seen.append(("any", params.text_document.uri))

    text_sync.add_on_save_hook(java_hook, suffixes=(".java",))
    text_sync.add_on_save_hook(any_hook)

    await text_sync._broadcast_on_save(save_params("file:///application.properties"))
    await text_sync._broadcast_on_save(save_params("file:///Mode.java"))

    assert seen == [
        ("any", "file:///application.properties"),
        ("java", "file:///Mode.java"),
        ("any", "file:///Mode.java"),
    ]
