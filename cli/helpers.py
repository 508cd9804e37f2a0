import sys
from typing import Optional

from multillm.client import MultiLLMClient
from multillm.config import DispatchConfig, build_dispatch_config, load_config


def add_dispatch_arguments(parser):
    """Dispatch flags shared by `run` and `random`."""
    group = parser.add_argument_group('dispatch options')
    group.add_argument('--max-tokens', type=int, help='Maximum tokens per response (default: 1024)')
    group.add_argument('--temperature', type=float, help='Sampling temperature 0-2 (default: 0.7)')
    group.add_argument('--timeout', type=float, help='Per-request timeout in seconds (default: 300)')
    group.add_argument('--retries', type=int, help='Extra attempts for transient failures (default: 2)')
    group.add_argument('--retry-wait', type=float, help='Base backoff in seconds, multiplied by attempt (default: 2)')
    group.add_argument('--monitor-timeout', type=float, help='Overall deadline for a parallel dispatch (default: 120)')
    group.add_argument('--workers', type=int, dest='max_workers', help='Parallel workers, at most 6 (default: 6)')
    group.add_argument('--no-stream', action='store_true', help='Request non-streaming responses')
    group.add_argument('--sequential', action='store_true', help='Query models one at a time')
    group.add_argument('--api-key', help='io.net API key (default: IONET_API_KEY)')
    group.add_argument('--json', action='store_true', help='Output the full result as JSON')
    group.add_argument('-q', '--quiet', action='store_true', help='Suppress progress and summary output')


def dispatch_config_from_args(args, **extra) -> DispatchConfig:
    return build_dispatch_config(
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        timeout=args.timeout,
        retries=args.retries,
        retry_wait=args.retry_wait,
        monitor_timeout=args.monitor_timeout,
        max_workers=args.max_workers,
        streaming=False if args.no_stream else None,
        parallel=False if args.sequential else None,
        **extra
    )


def read_prompt(prompt: str) -> str:
    """`-` reads the prompt from stdin."""
    if prompt == '-':
        return sys.stdin.read()
    return prompt


def create_client(api_key: Optional[str] = None) -> MultiLLMClient:
    return MultiLLMClient(settings=load_config(api_key))


def fail(message: str):
    print(f"❌ {message}", file=sys.stderr)
    sys.exit(1)
