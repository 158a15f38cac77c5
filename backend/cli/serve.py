"""CLI for the signed-source dev server and one-off resolution."""
import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wormhole.core.config import get_settings  # noqa: E402


def cmd_serve(args):
    """Run the dev server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        app_dir=str(ROOT),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


def cmd_sign(args):
    """Print the signature the dev server would send for a file."""
    from wormhole.services.verifiers import sign_source

    secret = args.secret or get_settings().signing_secret
    if not secret:
        print("No signing secret: pass --secret or set SIGNING_SECRET", file=sys.stderr)
        return 2
    source = Path(args.file).read_text(encoding="utf-8")
    print(sign_source(source, secret))
    return 0


def cmd_open(args):
    """Resolve a uri, verify its signature and call the component once."""
    from wormhole import DynamicComponentError, create_dynamic_component
    from wormhole.services.verifiers import hmac_signature_verifier

    settings = get_settings()
    secret = args.secret or settings.signing_secret
    if not secret:
        print("No signing secret: pass --secret or set SIGNING_SECRET", file=sys.stderr)
        return 2

    async def run():
        context = create_dynamic_component(
            verify=hmac_signature_verifier(secret, settings.signature_header)
        )
        component = await context.open({"uri": args.uri})
        result = component()
        if asyncio.iscoroutine(result):
            result = await result
        return result

    try:
        print(asyncio.run(run()))
    except DynamicComponentError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser():
    p = argparse.ArgumentParser(prog="wormhole")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("serve", help="Serve signed sources")
    s.add_argument("--host", help="Bind host (defaults to API_HOST)")
    s.add_argument("--port", type=int, help="Bind port (defaults to API_PORT)")
    s.add_argument("--reload", action="store_true", help="Reload on code changes")
    s.set_defaults(func=cmd_serve)
    s = sub.add_parser("sign", help="Print the signature for a source file")
    s.add_argument("file", help="Source file to sign")
    s.add_argument("--secret", help="Signing secret (defaults to SIGNING_SECRET)")
    s.set_defaults(func=cmd_sign)
    s = sub.add_parser("open", help="Resolve a uri and call its component")
    s.add_argument("uri", help="Uri of the signed source")
    s.add_argument("--secret", help="Signing secret (defaults to SIGNING_SECRET)")
    s.set_defaults(func=cmd_open)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
