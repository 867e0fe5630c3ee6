"""
Command line entry point: run the server or drive the APS workflow directly.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import AsyncIterator, List, Optional

import httpx

from src.config.config import config
from src.services.aps_auth import TokenProvider
from src.services.model_service import ModelService, create_model_service
from src.utils.exceptions import ViewerServiceException


async def iter_file(path: str, chunk_size: int) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            yield chunk


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aps-viewer", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="run the HTTP server")
    serve.add_argument("--host", default=config.server.host)
    serve.add_argument("--port", type=int, default=config.server.port)

    commands.add_parser("list", help="list uploaded models")

    status = commands.add_parser("status", help="show the translation status of a model")
    status.add_argument("urn")

    upload = commands.add_parser("upload", help="upload a design and start its translation")
    upload.add_argument("path")
    upload.add_argument("--entrypoint", help="main design file inside a zip archive")
    upload.add_argument("--wait", action="store_true", help="poll until the translation finishes")

    return parser


async def run_command(args: argparse.Namespace, model_service: ModelService) -> dict:
    if args.command == "list":
        models = await model_service.list_models()
        return {"models": [{"name": m.name, "urn": m.urn} for m in models]}

    if args.command == "status":
        return await model_service.get_model_status(args.urn)

    size = os.path.getsize(args.path)
    name = os.path.basename(args.path)
    model = await model_service.upload_model(
        name,
        iter_file(args.path, model_service.upload_config.chunk_size),
        size,
        zip_entrypoint=args.entrypoint
    )
    result = {"name": model.name, "urn": model.urn}
    if args.wait:
        manifest = await model_service.wait_for_model(model.urn)
        result.update(status=manifest.status, progress=manifest.progress, messages=manifest.messages)
    return result


async def _run(args: argparse.Namespace) -> dict:
    async with httpx.AsyncClient(timeout=httpx.Timeout(config.aps.http_timeout)) as http_client:
        token_provider = TokenProvider(http_client=http_client)
        model_service = create_model_service(token_provider, http_client=http_client)
        return await run_command(args, model_service)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("src.api.app:app", host=args.host, port=args.port, log_config=None)
        return 0

    try:
        result = asyncio.run(_run(args))
    except ViewerServiceException as e:
        print(json.dumps({"error": {"code": e.error_code, "message": e.message, "details": e.details}},
                         default=str), file=sys.stderr)
        return 1
    except OSError as e:
        print(json.dumps({"error": {"code": "FILE_ERROR", "message": f"{e.strerror}: {e.filename}"}},
                         default=str), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
