"""Run a standalone file server: ``python -m app.file_server --port 8384 --root DIR``."""

import argparse
import logging

import uvicorn

from app.config import settings
from app.file_server.server import create_file_server


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Category-bucketed file server")
    parser.add_argument("--port", type=int, default=settings.face2face_file_server_port)
    parser.add_argument("--root", default=settings.face2face_file_root)
    parser.add_argument("--host", default="0.0.0.0")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_file_server(args.root), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
