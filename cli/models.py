import json
from dataclasses import asdict

from multillm.display import print_catalog
from multillm.errors import ConfigurationError
from multillm.families import MODEL_FAMILIES, OTHER_FAMILY
from cli.helpers import create_client, fail


def cmd_models(args):
    try:
        with create_client(args.api_key) as client:
            entries = client.list_models(category=args.category, detailed=args.detailed, refresh=args.refresh)
    except ConfigurationError as e:
        fail(str(e))

    if args.json:
        data = [asdict(e) for e in entries] if args.detailed else list(entries)
        print(json.dumps(data, indent=2))
        return

    if not entries:
        print(f"No models in category '{args.category}'.")
        return

    title = "Available models" if args.category == "all" else f"Available {args.category} models"
    print_catalog(entries, title=title)


def setup_models_parser(subparsers):
    models_parser = subparsers.add_parser('models', help='List models available on the gateway')
    models_parser.add_argument(
        '-c', '--category',
        default='all',
        choices=['all'] + list(MODEL_FAMILIES) + [OTHER_FAMILY],
        help='Restrict to one model family (default: all)'
    )
    models_parser.add_argument('--detailed', action='store_true', help='Show family and description per model')
    models_parser.add_argument('--refresh', action='store_true', help='Bypass the cached catalog')
    models_parser.add_argument('--json', action='store_true', help='Output as JSON')
    models_parser.add_argument('--api-key', help='io.net API key (default: IONET_API_KEY)')
    models_parser.set_defaults(func=cmd_models)
