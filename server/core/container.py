"""Dependency injection container for the engine."""

from dependency_injector import containers, providers

from core.config import Settings
from core.logging import configure_logging
from services.ai import ChatCompletionClient
from services.execution import RetryPolicy, create_execution_store
from services.graph_source import FileGraphSource
from services.node_executor import NodeExecutor
from services.tool_client import HttpToolClient
from services.workflow import WorkflowService


class Container(containers.DeclarativeContainer):
    """Engine dependency injection container.

    Blockchain services have no implementation here; deployments override
    ``transfer_service``, ``swap_service`` and ``staking_service`` with
    their chain clients. Nodes of those types fail until they do.
    """

    # Settings
    settings = providers.Singleton(
        Settings,
    )

    # Call container.init_resources() once at startup
    logging_setup = providers.Resource(
        configure_logging,
        settings=settings
    )

    retry_policy = providers.Singleton(
        RetryPolicy.from_settings,
        settings=settings
    )

    # Persistence (Redis when enabled, memory otherwise)
    execution_store = providers.Singleton(
        create_execution_store,
        settings=settings
    )

    graph_source = providers.Singleton(
        FileGraphSource,
        directory=settings.provided.workflows_dir
    )

    # External collaborators
    chat_service = providers.Singleton(
        ChatCompletionClient,
        settings=settings
    )

    tool_service = providers.Singleton(
        HttpToolClient,
        settings=settings
    )

    transfer_service = providers.Object(None)
    swap_service = providers.Object(None)
    staking_service = providers.Object(None)

    node_executor = providers.Singleton(
        NodeExecutor,
        transfer_service=transfer_service,
        swap_service=swap_service,
        staking_service=staking_service,
        chat_service=chat_service,
        tool_service=tool_service,
        retry_policy=retry_policy
    )

    workflow_service = providers.Singleton(
        WorkflowService,
        graph_source=graph_source,
        store=execution_store,
        node_executor=node_executor
    )


# Global container instance
container = Container()
