import json

from rich.console import Console
from rich.text import Text

from multillm.errors import ConfigurationError, NoValidModelsError
from multillm.models import MultiLLMResult
from cli.helpers import add_dispatch_arguments, create_client, dispatch_config_from_args, fail, read_prompt


def print_result(result: MultiLLMResult, as_json: bool = False):
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    console = Console()
    for model, outcome in result.results.items():
        console.rule(f"[bold cyan]{model}[/bold cyan]")
        if outcome.success:
            console.print(Text(outcome.response))
        else:
            console.print(Text(f"❌ {outcome.error}", style="red"))


def cmd_run(args):
    verbose = not (args.json or args.quiet)
    try:
        config = dispatch_config_from_args(
            args,
            max_models=args.max_models,
            random_selection=True if args.random else None,
            balanced=True if args.balanced else None,
        )
        with create_client(args.api_key) as client:
            result = client.run(read_prompt(args.prompt), models=args.models, config=config, verbose=verbose)
    except NoValidModelsError as e:
        fail(e.describe())
    except ConfigurationError as e:
        fail(str(e))

    print_result(result, as_json=args.json)


def cmd_random(args):
    verbose = not (args.json or args.quiet)
    try:
        config = dispatch_config_from_args(args)
        with create_client(args.api_key) as client:
            result = client.run_random(
                read_prompt(args.prompt),
                count=args.count,
                balanced=not args.pure_random,
                exclude_models=args.exclude or (),
                config=config,
                verbose=verbose
            )
    except NoValidModelsError as e:
        fail(e.describe())
    except ConfigurationError as e:
        fail(str(e))

    print_result(result, as_json=args.json)


def setup_run_parser(subparsers):
    run_parser = subparsers.add_parser('run', help='Send a prompt to several models')
    run_parser.add_argument('prompt', help="Prompt text ('-' reads stdin)")
    run_parser.add_argument('-m', '--models', nargs='+', help='Model ids (default: whole catalog up to --max-models)')
    run_parser.add_argument('--max-models', type=int, help='Maximum number of models, 1-50 (default: 6)')
    run_parser.add_argument('--random', action='store_true', help='Sample randomly when over --max-models')
    run_parser.add_argument('--balanced', action='store_true', help='Spread the selection across model families')
    add_dispatch_arguments(run_parser)
    run_parser.set_defaults(func=cmd_run)


def setup_random_parser(subparsers):
    random_parser = subparsers.add_parser('random', help='Send a prompt to N randomly picked models')
    random_parser.add_argument('prompt', help="Prompt text ('-' reads stdin)")
    random_parser.add_argument('-n', '--count', type=int, default=10, help='Number of models (default: 10)')
    random_parser.add_argument('--pure-random', action='store_true', help='Uniform pick instead of family-balanced')
    random_parser.add_argument('--exclude', nargs='+', help='Model ids to leave out')
    add_dispatch_arguments(random_parser)
    random_parser.set_defaults(func=cmd_random)
