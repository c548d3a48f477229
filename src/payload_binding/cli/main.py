from __future__ import annotations

import argparse
import json
from pathlib import Path

from payload_binding.binding.engine import bind_form, bind_self_describing
from payload_binding.cli.readers import codec_for_path, load_model, parse_form_data, read_form_file
from payload_binding.cli.summary import BindSummary, to_document
from payload_binding.dispatch.content import error_status
from payload_binding.logging_config import setup_logging


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for binding and validating payloads against a shape.

    The `cmd` options are:
    ## form:
    Bind URL-encoded data into the shape.
    - `--model` as the shape, `package.module:Class`,
    - `--data` as the URL-encoded data, or `--input` as a file holding it.

    ## decode:
    Decode a JSON/YAML document into the shape.
    - `--model` as the shape,
    - `--input` as the document, `--codec` to override the codec implied by its suffix.

    Both print a one-line summary, or the bound value and errors with `--json`.
    Exit code is 0 without errors, 1 with errors.

    ### Example usage:
    - `payload-bind form --model myapp.forms:Signup --data "name=ada&age=36"`
    - `payload-bind decode --model myapp.forms:Signup --input signup.yaml --json`
    """
    p = argparse.ArgumentParser(prog="payload-bind")
    sub = p.add_subparsers(dest="cmd", required=True)

    # form cmd
    form = sub.add_parser("form", help="Bind URL-encoded form data into a shape.")
    form.add_argument("--model", required=True, help="Shape to bind into, as `package.module:Class`.")
    source = form.add_mutually_exclusive_group(required=True)
    source.add_argument("--data", help="URL-encoded data, e.g. `title=Hi&id=1`.")
    source.add_argument("--input", help="Path to a file holding URL-encoded data.")
    form.add_argument("--json", action="store_true", help="Print the bound value and errors as JSON.")

    # decode cmd
    decode = sub.add_parser("decode", help="Decode a JSON/YAML document into a shape.")
    decode.add_argument("--model", required=True, help="Shape to decode into, as `package.module:Class`.")
    decode.add_argument("--input", required=True, help="Path to the JSON or YAML document.")
    decode.add_argument("--codec", choices=["json", "yaml"], default=None, help="Defaults to the file suffix.")
    decode.add_argument("--json", action="store_true", help="Print the bound value and errors as JSON.")

    args = p.parse_args(argv)
    setup_logging()

    try:
        model = load_model(args.model)
    except (ImportError, AttributeError, ValueError) as e:
        p.error(f"--model: {e}")

    if args.cmd == "form":
        values = parse_form_data(args.data) if args.data is not None else read_form_file(Path(args.input))
        value, errors = bind_form(model, values)

    elif args.cmd == "decode":
        input_path = Path(args.input)
        try:
            codec = args.codec or codec_for_path(input_path)
        except ValueError as e:
            p.error(str(e))
        value, errors = bind_self_describing(model, input_path.read_bytes(), codec=codec)

    else:
        return 2

    summary = BindSummary(
        model=model.__name__,
        errors=len(errors),
        status=error_status(errors) if errors else 200,
    )
    if args.json:
        print(json.dumps({"value": to_document(value), "errors": errors.to_payload()}, ensure_ascii=False))
    else:
        print(summary.render_one_line())
    return 0 if not errors else 1
