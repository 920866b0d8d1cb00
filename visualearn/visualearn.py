#!/usr/bin/env python3
"""
VisuaLearn - command-line entry point.

Loads the configuration, sets up logging, initializes the Gemini provider
with the stored API key and runs the interactive chat loop.
"""

import argparse
import asyncio
import sys
from typing import Optional

from dotenv import load_dotenv

from .colors import Colors
from .command_handler import CommandHandler, async_command_loop, INIT_FAILED_MESSAGE
from .config import Config
from .logging_utils import DEFAULT_LOG_FILE, configure_logging, get_logger
from .providers import GeminiProvider

logger = get_logger(__name__)


def display_welcome_message():
    """Display the welcome message for the VisuaLearn application."""
    print(f"{Colors.HEADER}{Colors.BOLD}")
    print("╔═════════════════════════════════════════╗")
    print("║              VisuaLearn                 ║")
    print("║         ----------------------          ║")
    print("║   Chat with Gemini about text & images  ║")
    print("╚═════════════════════════════════════════╝")
    print(f"{Colors.ENDC}")


def parse_arguments(argv: Optional[list] = None):
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="VisuaLearn - chat with Google's Gemini models, with optional image attachments."
    )
    parser.add_argument('--api-key',
                        help='Gemini API key for this session. Overrides config and the GEMINI_API_KEY environment variable.')
    parser.add_argument('--config', help='Path to configuration file.')
    parser.add_argument('--image',
                        help='Image file to attach to the first message.')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress non-essential output messages (like "Config loaded").')
    parser.add_argument('--debug', action='store_true',
                        help='Show debug log output on the console.')
    parser.add_argument('--log-file', default=str(DEFAULT_LOG_FILE),
                        help='Path of the rotating log file. Pass an empty string to disable file logging.')
    return parser.parse_args(argv)


def build_provider(config: Config) -> GeminiProvider:
    """Create the Gemini provider from the configured model candidates."""
    return GeminiProvider(
        text_models=config.get_model_candidates("text"),
        vision_models=config.get_model_candidates("vision"),
        chat_max_output_tokens=int(config.get("chat_max_output_tokens")),
    )


async def async_initialize_and_run(handler: CommandHandler, image_path: Optional[str] = None) -> None:
    """Initialize the provider with the stored key and run the chat loop.

    Args:
        handler: The command handler wrapping provider and config
        image_path: Optional image to attach to the first message
    """
    api_key = handler.config.get_api_key()
    if api_key:
        print(f"{Colors.CYAN}Connecting to Gemini...{Colors.ENDC}")
        if await handler.provider.initialize(api_key):
            print(f"{Colors.GREEN}Successfully connected to Gemini API.{Colors.ENDC}")
        else:
            print(f"{Colors.FAIL}{INIT_FAILED_MESSAGE}{Colors.ENDC}")
            print(f"Use {Colors.BOLD}/key{Colors.ENDC} to enter a different API key.")
    else:
        print(f"{Colors.WARNING}No API key found. Please enter your Gemini API key "
              f"(get one at https://aistudio.google.com/app/apikey).{Colors.ENDC}")
        await handler.cmd_key("")

    if image_path:
        await handler.cmd_attach(image_path)

    await async_command_loop(handler)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)
    load_dotenv()

    config = Config(args.config, override_api_key=args.api_key, quiet=args.quiet)
    console_level = "DEBUG" if args.debug else config.get("log_level", "WARNING")
    configure_logging(console_level=console_level, log_file=args.log_file or None)

    display_welcome_message()

    handler = CommandHandler(build_provider(config), config)
    try:
        asyncio.run(async_initialize_and_run(handler, args.image))
    except KeyboardInterrupt:
        print(f"\n{Colors.GREEN}Goodbye!{Colors.ENDC}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
