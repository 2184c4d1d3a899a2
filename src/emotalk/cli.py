"""CLI application for text conversations with the realtime agent."""
import asyncio
import sys
from typing import List, Optional

from emotalk.cognition.decoder import ReplySegment
from emotalk.config import Config, get_config
from emotalk.core.orchestrator import TurnOrchestrator, create_orchestrator
from emotalk.exceptions import ConfigError, TransportError
from emotalk.logging_config import set_level, setup_logger

logger = setup_logger("emotalk.cli")


class ConsoleIO:
    """Terminal input and reply rendering.

    input() blocks, so it runs in the default executor to keep the event
    loop free while the user types.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    async def read(self, prompt: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, input, prompt)
        except EOFError:
            return None

    def render(self, segments: List[ReplySegment]) -> None:
        for segment in segments:
            print(
                f"[{segment.facial_expression} | {segment.animation}] {segment.text}",
                file=self.stream,
            )
        self.stream.flush()


class CLI:
    """CLI application."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.io = ConsoleIO()
        self.orchestrator: Optional[TurnOrchestrator] = None

    async def run(self) -> None:
        """Run the CLI application."""
        logger.info("=" * 50)
        logger.info("emotalk - realtime conversation")
        logger.info("Type 'exit' or press Ctrl+D to quit")
        logger.info("=" * 50)

        self.orchestrator = create_orchestrator(
            config=self.config,
            input_provider=self.io.read,
            renderer=self.io.render,
        )
        if self.orchestrator.retriever is None:
            logger.info("Retrieval disabled (INDEX_NAME not set)")

        await self.orchestrator.run()
        logger.info("Goodbye!")


async def run_cli(config: Optional[Config] = None) -> None:
    """Run the CLI application."""
    cli = CLI(config)
    await cli.run()


def main() -> int:
    """CLI entry point."""
    try:
        config = get_config()
        set_level(config.log_level)
        asyncio.run(run_cli(config))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except TransportError as e:
        logger.error(f"Failed to run the chatbot: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
