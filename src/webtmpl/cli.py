"""Command-line interface for webtmpl."""

from __future__ import annotations

import argparse
import logging
import sys
import time
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from webtmpl.errors import ConfigError, StylesheetCompileError, TemplateSyntaxError
from webtmpl.loader import LoaderConfig
from webtmpl.stylesheets import DefaultStylesheetCompiler, SassCompiler

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    config: LoaderConfig
    sass_command: str
    stylesheet_timeout: float
    watch: bool
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="webtmpl",
        description="Compile HTML templates to Python template modules",
    )
    p.add_argument("input", help="Input template file")
    p.add_argument("-o", "--output", help="Output .py file (default: stdout)")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover webtmpl.toml)",
    )
    p.add_argument(
        "--attr",
        action="append",
        default=[],
        metavar="TAG:ATTR",
        help="Attribute holding a resource reference, e.g. img:src (repeatable)",
    )
    p.add_argument("--url-root", metavar="URL", help="Public root for resolved references")
    p.add_argument(
        "--no-minimize",
        dest="minimize",
        action="store_false",
        default=None,
        help="Keep markup as written",
    )
    p.add_argument(
        "--sass-command",
        metavar="CMD",
        help="Sass compiler command (default: sass)",
    )
    p.add_argument(
        "--stylesheet-timeout",
        type=float,
        default=None,
        metavar="SECS",
        help="Stylesheet compiler timeout in seconds (default: 30.0)",
    )
    p.add_argument("--watch", action="store_true", help="Watch for changes and recompile")
    p.add_argument("--debug", action="store_true", help="Dump references and markers to stderr")
    return p


def parse_attr_arg(s: str) -> str:
    """Validate a TAG:ATTR (or :ATTR) reference attribute."""
    _, sep, attr = s.partition(":")
    if not sep or not attr:
        raise argparse.ArgumentTypeError(f"invalid attribute format (expected TAG:ATTR): {s}")
    return s


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "webtmpl.toml"

    if not path.is_file():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from None


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    raw = load_config(config_path, input_dir)

    cfg_loader = raw.get("loader", {})
    if not isinstance(cfg_loader, dict):
        raise ConfigError("[loader] must be a table")
    config = LoaderConfig.from_mapping(cfg_loader)

    # Reference attributes: config < CLI
    attributes = list(config.attributes)
    attributes.extend(parse_attr_arg(a) for a in args.attr)
    config = replace(config, attributes=tuple(attributes))
    if args.url_root is not None:
        config = replace(config, url_root=args.url_root)
    if args.minimize is not None:
        config = replace(config, minimize=args.minimize)

    # Stylesheet compiler: config < CLI
    sass_command = "sass"
    stylesheet_timeout = 30.0
    cfg_sheets = raw.get("stylesheets")
    if isinstance(cfg_sheets, dict):
        cfg_command = cfg_sheets.get("command")
        if isinstance(cfg_command, str):
            sass_command = cfg_command
        cfg_timeout = cfg_sheets.get("timeout")
        if isinstance(cfg_timeout, (int, float)):
            stylesheet_timeout = float(cfg_timeout)
    if args.sass_command:
        sass_command = args.sass_command
    if args.stylesheet_timeout is not None:
        stylesheet_timeout = args.stylesheet_timeout

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        config=config,
        sass_command=sass_command,
        stylesheet_timeout=stylesheet_timeout,
        watch=args.watch,
        debug=args.debug,
    )


def compile_file(options: CliOptions) -> str:
    """Read and compile a template file to Python module source."""
    from webtmpl.debug import dump_template
    from webtmpl.loader import compile_template

    source = options.input_file.read_text(encoding="utf-8")

    doc_dir = options.input_file.parent
    if not doc_dir.parts:
        doc_dir = Path(".")

    if options.debug:
        dump_template(
            source,
            options.config.attributes,
            options.config.url_root or None,
            file=sys.stderr,
        )

    compiler = DefaultStylesheetCompiler(
        sass=SassCompiler(command=options.sass_command, timeout=options.stylesheet_timeout),
    )
    return compile_template(
        source,
        options.config,
        context_dir=doc_dir,
        filename=str(options.input_file),
        stylesheet_compiler=compiler,
    )


def _write_output(options: CliOptions, code: str) -> None:
    if options.output_file:
        options.output_file.write_text(code, encoding="utf-8")
    else:
        sys.stdout.write(code)
        sys.stdout.flush()


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, recompile on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    _write_output(options, compile_file(options))
                    print(f"Compiled {options.input_file}", file=sys.stderr)
                except TemplateSyntaxError as exc:
                    print(exc.format(str(options.input_file)), file=sys.stderr)
                except StylesheetCompileError as exc:
                    print(str(exc), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, ConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        code = compile_file(options)
    except TemplateSyntaxError as exc:
        print(exc.format(str(options.input_file)), file=sys.stderr)
        return 1
    except StylesheetCompileError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _write_output(options, code)
    log.debug("wrote %s", options.output_file or "<stdout>")
    return 0


def run() -> None:
    """Console-script wrapper around main()."""
    sys.exit(main())
