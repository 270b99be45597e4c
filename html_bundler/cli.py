"""CLI for html-bundler."""

import argparse
import asyncio
import json
import logging
import os
import sys

from html_bundler.analysis.analyzer import DocumentNotFoundError
from html_bundler.analysis.url_loader import UrlLoadError
from html_bundler.bundler import Bundler
from html_bundler.bundles.bundle_manifest import generate_counting_shared_bundle_url_mapper
from html_bundler.domain.constants import DEFAULT_SHARED_BUNDLE_PREFIX
from html_bundler.domain.models import BundleRunResult, BundlerOptions
from html_bundler.errors import BundlerError

logger = logging.getLogger(__name__)


def _write_text(path: str, text: str) -> None:
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def generate_project_manifest(root: str, entrypoints: list[str], options: BundlerOptions) -> dict:
    """Plan bundles for ``entrypoints`` below ``root`` and return the manifest as JSON data."""
    options.root_dir = root
    bundler = Bundler(options)
    manifest = asyncio.run(bundler.generate_manifest(entrypoints))
    return manifest.to_json_dict()


def bundle_project(
    root: str,
    entrypoints: list[str],
    out_dir: str,
    options: BundlerOptions,
    manifest_out: str | None = None,
) -> BundleRunResult:
    """Main orchestration: entrypoints -> manifest -> merged documents on disk."""
    options.root_dir = root
    bundler = Bundler(options)
    result = asyncio.run(bundler.bundle_entrypoints(entrypoints))

    written = []
    for url, document in result.documents.items():
        path = os.path.join(out_dir, *url.split('/'))
        _write_text(path, document.serialize())
        logger.debug("Wrote %s", path)
        written.append(url)

    manifest = result.manifest.to_json_dict()
    if manifest_out:
        _write_text(manifest_out, json.dumps(manifest, indent=2))

    return BundleRunResult(
        entrypoints=list(entrypoints),
        bundles_written=written,
        output_dir=out_dir,
        manifest=manifest,
    )


def _options_from_args(args) -> BundlerOptions:
    options = BundlerOptions(
        excludes=list(args.exclude or []),
        url_mapper=generate_counting_shared_bundle_url_mapper(args.shared_prefix),
    )
    if args.command == 'bundle':
        options.inline_css = not args.no_inline_css
        options.inline_scripts = not args.no_inline_scripts
        options.strip_comments = args.strip_comments
        options.rewrite_urls_in_templates = args.rewrite_urls_in_templates
        options.skip_unresolved_imports = args.skip_unresolved_imports
        options.sourcemaps = args.sourcemaps
    return options


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('entrypoints', nargs='+', help='Entrypoint URLs, relative to --root')
    parser.add_argument('--root', default='.', help='Root directory URLs resolve against (default: .)')
    parser.add_argument('--exclude', action='append', help='URL or folder to keep out of bundles (repeatable)')
    parser.add_argument('--shared-prefix', default=DEFAULT_SHARED_BUNDLE_PREFIX,
                        help=f'Name prefix of shared bundles (default: {DEFAULT_SHARED_BUNDLE_PREFIX})')
    parser.add_argument('--verbose', action='store_true', help='Log progress to stderr')


def main():
    parser = argparse.ArgumentParser(prog='html-bundler', description='HTML import bundler')
    subparsers = parser.add_subparsers(dest='command')

    # manifest command
    manifest_parser = subparsers.add_parser('manifest', help='Print the bundle manifest as JSON')
    _add_common_arguments(manifest_parser)

    # bundle command
    bundle_parser = subparsers.add_parser('bundle', help='Write bundled documents')
    _add_common_arguments(bundle_parser)
    bundle_parser.add_argument('--out-dir', required=True, help='Output directory')
    bundle_parser.add_argument('--manifest-out', help='Also write the manifest JSON to this file')
    bundle_parser.add_argument('--no-inline-css', action='store_true', help='Keep stylesheet links')
    bundle_parser.add_argument('--no-inline-scripts', action='store_true', help='Keep external scripts')
    bundle_parser.add_argument('--strip-comments', action='store_true', help='Remove comments (keeps @license)')
    bundle_parser.add_argument('--rewrite-urls-in-templates', action='store_true',
                               help='Rebase URLs inside <template> content too')
    bundle_parser.add_argument('--skip-unresolved-imports', action='store_true',
                               help='Warn instead of failing on unloadable references')
    bundle_parser.add_argument('--sourcemaps', action='store_true', help='Keep sourceMappingURL comments resolving')

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    if not os.path.isdir(args.root):
        print(f"Error: {args.root} is not a directory", file=sys.stderr)
        sys.exit(1)

    options = _options_from_args(args)
    try:
        if args.command == 'manifest':
            manifest = generate_project_manifest(args.root, args.entrypoints, options)
            print(json.dumps(manifest, indent=2))
        elif args.command == 'bundle':
            print(f"Bundling {len(args.entrypoints)} entrypoint(s) from {args.root}...")
            result = bundle_project(args.root, args.entrypoints, args.out_dir, options, args.manifest_out)
            print(f"Done! Wrote {len(result.bundles_written)} bundle(s)")
            print(f"Output: {result.output_dir}")
    except (BundlerError, UrlLoadError, DocumentNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
