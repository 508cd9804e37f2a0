import argparse

from cli.models import setup_models_parser
from cli.run import setup_random_parser, setup_run_parser


def create_parser():
    parser = argparse.ArgumentParser(
        prog='mllm',
        description='mllm - Send one prompt to many io.net models and compare the answers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Catalog
  mllm models
  mllm models --category deepseek --detailed
  mllm models --refresh --json

  # Query specific models
  mllm run "What is a monad?" -m meta-llama/Llama-3.3-70B-Instruct Qwen/Qwen3-235B-A22B-FP8
  mllm run - --max-models 4 --balanced < notes.txt
  echo "Write a haiku about queues" | mllm run - --json

  # Random pick across families
  mllm random "Name three sorting algorithms" --count 5
  mllm random "Explain RAFT" --pure-random --exclude microsoft/phi-4
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')
    subparsers.required = True

    setup_models_parser(subparsers)
    setup_run_parser(subparsers)
    setup_random_parser(subparsers)

    return parser


def main(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)
    args.func(args)
