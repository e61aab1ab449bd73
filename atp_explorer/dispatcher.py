"""
Command dispatch with outcome tracking.

Sends a fully specified command to the protocol client and records every
attempt, successful or not, in the history store.
"""

import logging
from typing import Any, Mapping, Protocol

from atp_explorer.catalog import CommandCatalog
from atp_explorer.errors import DispatchInProgressError, ProtocolError
from atp_explorer.history import Failure, HistoryStore, Invocation, Outcome, Success, summarize

logger = logging.getLogger(__name__)


class ProtocolClient(Protocol):
    """Capability that performs one XRPC call."""

    async def invoke(
        self, command_id: str, params: Mapping[str, str], accept: str = "application/json"
    ) -> Any:
        """Return the decoded response payload or raise ProtocolError."""
        ...


class Dispatcher:
    """
    Executes commands through a protocol client.

    Failed dispatches are terminal; nothing is retried automatically.
    """

    def __init__(self, client: ProtocolClient, history: HistoryStore, catalog: CommandCatalog):
        """
        Initialize dispatcher.

        Args:
            client: Protocol client capability.
            history: Store that receives one Invocation per dispatch.
            catalog: Catalog used to reject unknown commands before any call.
        """
        self.client = client
        self.history = history
        self.catalog = catalog
        self._in_flight: str | None = None

        self.stats = {
            "dispatched": 0,
            "succeeded": 0,
            "failed": 0,
        }

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    async def execute(self, command_id: str, values: Mapping[str, str]) -> Outcome:
        """
        Dispatch a command and record the outcome.

        Args:
            command_id: Command identifier.
            values: Parameter values keyed by name.

        Returns:
            Success with the response payload, or Failure with the error
            message. Errors raised by the client, expected or not, become a
            recorded Failure.

        Raises:
            CommandNotFoundError: If command_id is not in the catalog.
            DispatchInProgressError: If another dispatch is outstanding.
        """
        command = self.catalog.lookup(command_id)
        if self._in_flight is not None:
            raise DispatchInProgressError(self._in_flight)

        self._in_flight = command_id
        self.stats["dispatched"] += 1
        params = dict(values)
        logger.info(f"Dispatch {command_id} params={params}")
        try:
            payload = await self.client.invoke(command_id, params, accept=command.encoding)
        except ProtocolError as e:
            outcome: Outcome = Failure(str(e))
            self.stats["failed"] += 1
            logger.warning(f"Dispatch {command_id} failed: {e}")
        except Exception as e:
            outcome = Failure(f"Unexpected error: {e}")
            self.stats["failed"] += 1
            logger.error(f"Dispatch {command_id} crashed: {e}", exc_info=True)
        else:
            outcome = Success(payload, summarize(payload))
            self.stats["succeeded"] += 1
            logger.info(f"Dispatch {command_id} succeeded: {outcome.summary}")
        finally:
            self._in_flight = None

        self.history.record(Invocation(command_id, params, outcome))
        return outcome
