"""Console entry point for the conversational scheduler.

Usage: python -m convo_scheduler.main [config.yaml] [-v|-vv|-vvv]
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .agent.generative_assist import GenerativeAssist
from .agent.materializer import TaskMaterializer
from .agent.proposals import SlotPolicy
from .agent.state_machine import SchedulingStateMachine
from .config.config_loader import load_config
from .config.config_schema import AppConfig
from .context.session_store import InMemorySessionStore
from .llm.base import BaseLLM
from .llm.gemini_llm import GeminiLLM
from .llm.ollama_llm import OllamaLLM
from .llm.openai_llm import OpenAILLM
from .tools.sqlite_task_writer import SQLiteTaskWriter
from .utils.logging import parse_verbosity, setup_logging, strip_verbosity_flags

logger = logging.getLogger(__name__)

LOCAL_USER_ID = "local"
EXIT_COMMANDS = ("exit", "quit", ":q")


def create_llm(config: AppConfig) -> Optional[BaseLLM]:
    """
    Create LLM instance based on configuration.

    Args:
        config: Application configuration

    Returns:
        BaseLLM instance, or None when no llm section is configured
    """
    if config.llm is None:
        return None

    provider = config.llm.provider.lower()

    if provider == "ollama":
        if not config.llm.ollama:
            raise ValueError("Ollama configuration is required")
        return OllamaLLM(
            model=config.llm.ollama.model,
            base_url=config.llm.ollama.base_url,
            temperature=config.llm.ollama.temperature,
            max_tokens=config.llm.ollama.max_tokens,
            context_window=config.llm.ollama.context_window,
        )

    elif provider == "openai":
        if not config.llm.openai:
            raise ValueError("OpenAI configuration is required")
        return OpenAILLM(
            api_key=config.llm.openai.api_key,
            model=config.llm.openai.model,
            temperature=config.llm.openai.temperature,
            max_tokens=config.llm.openai.max_tokens,
            organization_id=config.llm.openai.organization_id,
            base_url=config.llm.openai.base_url,
        )

    elif provider == "gemini":
        if not config.llm.gemini:
            raise ValueError("Gemini configuration is required")
        return GeminiLLM(
            api_key=config.llm.gemini.api_key,
            model=config.llm.gemini.model,
            temperature=config.llm.gemini.temperature,
            max_tokens=config.llm.gemini.max_tokens,
            safety_settings=config.llm.gemini.safety_settings,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")


async def build_state_machine(config: AppConfig) -> SchedulingStateMachine:
    """
    Wire the scheduling engine from configuration.

    A failing LLM validation downgrades to deterministic mode.

    Args:
        config: Application configuration

    Returns:
        Ready SchedulingStateMachine
    """
    scheduler = config.scheduler

    logger.info("Initializing task database")
    logger.info(f"  Database path: {config.database.task_db}")
    task_writer = SQLiteTaskWriter(config.database.task_db)
    await task_writer.initialize()

    assist = None
    llm = create_llm(config)
    if llm is None:
        logger.info("No LLM configured, running in deterministic mode")
    else:
        logger.info(f"Validating LLM: {config.llm.provider} / {llm.get_model_name()}")
        try:
            await llm.validate()
        except Exception as e:
            logger.warning(f"LLM validation failed, continuing in deterministic mode: {e}")
        else:
            assist = GenerativeAssist(
                llm,
                timeout_seconds=scheduler.assist_timeout_seconds,
                max_attempts=scheduler.max_parse_attempts,
                weekday_hour=scheduler.weekday_default_hour,
                weekend_hour=scheduler.weekend_default_hour,
                default_duration=scheduler.default_duration_minutes,
            )
            logger.info(f"Generative assist ready ({scheduler.assist_mode} mode)")

    policy = SlotPolicy(
        weekday_hour=scheduler.weekday_default_hour,
        weekend_hour=scheduler.weekend_default_hour,
        duration_minutes=scheduler.default_duration_minutes,
        min_duration_minutes=scheduler.min_duration_minutes,
        plan_session_count=scheduler.plan_session_count,
    )

    return SchedulingStateMachine(
        session_store=InMemorySessionStore(history_limit=scheduler.history_limit),
        materializer=TaskMaterializer(task_writer),
        assist=assist,
        policy=policy,
        assist_mode=scheduler.assist_mode,
        assist_history_turns=scheduler.assist_history_turns,
    )


async def run_console(machine: SchedulingStateMachine, user_id: str = LOCAL_USER_ID) -> None:
    """Read messages from stdin until EOF or an exit command."""
    print("Describe what you want to schedule (type 'exit' to quit).")
    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            break

        if text.strip().lower() in EXIT_COMMANDS:
            break

        result = await machine.handle_message(user_id, text)
        print(result.message)
        logger.debug(f"Result: state={result.state}, created={result.created_task_ids}, {result.processing_time_ms:.1f} ms")


async def main() -> None:
    """Main entry point."""
    setup_logging(verbosity=parse_verbosity(sys.argv))

    args = strip_verbosity_flags(sys.argv[1:])
    config_path = args[0] if args else "config.yaml"

    if Path(config_path).exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            config = load_config(config_path)
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            sys.exit(1)
    else:
        logger.warning(f"Configuration file not found: {config_path}, using defaults")
        config = AppConfig()

    machine = await build_state_machine(config)
    try:
        await run_console(machine)
    except KeyboardInterrupt:
        pass
    logger.info("Scheduler stopped")


def cli() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
