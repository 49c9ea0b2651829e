#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoAGen (Mixture-of-Agents Generation) - Command Line Interface

Usage examples:
    # Use YAML configuration file
    moagen "What is 2+2?" --config examples/moa.yaml

    # Use model names directly: one argument per layer, comma separated agents
    moagen "What is 2+2?" --layers gpt-4o-mini,grok-3-mini gemini-2.5-flash --aggregator gpt-4o

    # Interactive mode (no question provided)
    moagen --layers gpt-4o-mini,grok-3-mini --aggregator gpt-4o
"""

import argparse
import sys
from typing import List, Optional

from .config import create_config_from_models, load_config_from_yaml
from .errors import ConfigurationError, MoAError
from .logging import setup_logging
from .main import get_layer_models, run_moa_with_config
from .types import MoAConfig

# Color constants for terminal output
BRIGHT_CYAN = '\033[96m'
BRIGHT_GREEN = '\033[92m'
BRIGHT_YELLOW = '\033[93m'
BRIGHT_WHITE = '\033[97m'
RESET = '\033[0m'
BOLD = '\033[1m'


def parse_layers(layer_args: List[str]) -> List[List[str]]:
    """Turn ["a,b", "c"] into [["a", "b"], ["c"]]."""
    return [[model.strip() for model in layer.split(",") if model.strip()] for layer in layer_args]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moagen",
        description="MoAGen (Mixture-of-Agents Generation) - CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use YAML configuration
  moagen "What is the capital of France?" --config examples/moa.yaml

  # Two layers: two agents, then one agent
  moagen "What is 2+2?" --layers gpt-4o-mini,grok-3-mini gemini-2.5-flash --aggregator gpt-4o

  # Override parameters
  moagen "Question" --config examples/moa.yaml --iterations 3 --max-parallel 2 --agent-timeout 60
        """
    )

    parser.add_argument("question", nargs='?',
                        help="Question to solve (optional - if not provided, enters interactive mode)")

    # Configuration options (mutually exclusive)
    config_group = parser.add_mutually_exclusive_group(required=True)
    config_group.add_argument("--config", type=str,
                              help="Path to YAML configuration file")
    config_group.add_argument("--layers", nargs="+",
                              help="One argument per layer, agents separated by commas")

    parser.add_argument("--aggregator", type=str, default=None,
                        help="Aggregator model (required with --layers)")

    # Configuration overrides
    parser.add_argument("--iterations", type=int, default=None,
                        help="Number of passes through the layers")
    parser.add_argument("--max-parallel", type=int, default=None,
                        help="Maximum concurrent agent calls per layer (0 = no cap)")
    parser.add_argument("--agent-timeout", type=float, default=None,
                        help="Per-call timeout in seconds (0 = none)")
    parser.add_argument("--log-level", type=str, default=None,
                        help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def load_cli_config(args: argparse.Namespace) -> MoAConfig:
    """Build the configuration from parsed arguments and apply overrides."""
    if args.config:
        config = load_config_from_yaml(args.config)
    else:
        if not args.aggregator:
            raise ConfigurationError("--aggregator is required when using --layers")
        config = create_config_from_models(parse_layers(args.layers), args.aggregator)

    # Apply command-line overrides
    if args.iterations is not None:
        config.orchestrator.iterations = args.iterations
    if args.max_parallel is not None:
        config.orchestrator.max_parallel = args.max_parallel
    if args.agent_timeout is not None:
        config.orchestrator.agent_timeout = args.agent_timeout
    if args.log_level:
        config.logging.level = args.log_level

    # Validate final configuration
    config.validate()
    return config


def print_result(result: dict, config: MoAConfig):
    print("\n" + "=" * 60)
    print(f"{BOLD}{BRIGHT_WHITE}🎯 FINAL ANSWER:{RESET}")
    print("=" * 60)
    print(result["answer"])
    print("\n" + "=" * 60)
    print(f"{BRIGHT_CYAN}🤖 Layers:{RESET} {get_layer_models(config)}")
    print(f"{BRIGHT_CYAN}🎯 Aggregator:{RESET} {config.aggregator.describe()}")
    print(f"{BRIGHT_YELLOW}🔁 Iterations:{RESET} {config.orchestrator.iterations}")
    print(f"{BRIGHT_GREEN}⏱️  Duration:{RESET} {result['session_duration']:.1f}s")


def run_interactive_mode(config: MoAConfig):
    """Ask for questions repeatedly until the user quits."""
    print("\n🤖 MoAGen Interactive Mode")
    print("=" * 60)
    print(f"🤖 Layers: {get_layer_models(config)}")
    print(f"🎯 Aggregator: {config.aggregator.describe()}")
    print("💬 Type your questions below. Type 'quit', 'exit', or press Ctrl+C to stop.")
    print("=" * 60)

    try:
        while True:
            question = input("\n👤 User: ").strip()

            if question.lower() in ['quit', 'exit', 'q']:
                print("👋 Goodbye!")
                break

            if not question:
                print("Please enter a question or type 'quit' to exit.")
                continue

            print("\n🔄 Processing your question...")
            try:
                result = run_moa_with_config(question, config)
            except MoAError as e:
                print(f"❌ Error processing question: {e}")
                print("Please try again or type 'quit' to exit.")
                continue
            print_result(result, config)

    except (KeyboardInterrupt, EOFError):
        print("\n👋 Goodbye!")


def main(argv: Optional[List[str]] = None) -> int:
    """Clean CLI interface for MoAGen."""
    args = build_parser().parse_args(argv)

    try:
        config = load_cli_config(args)
        setup_logging(config.logging)

        if args.question:
            result = run_moa_with_config(args.question, config)
            print_result(result, config)
        else:
            run_interactive_mode(config)

    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return 1
    except MoAError as e:
        print(f"❌ Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
