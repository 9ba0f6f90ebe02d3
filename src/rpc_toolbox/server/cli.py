from __future__ import annotations

import argparse
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from .app import SECRET_KEY_ENV, URL_PREFIX_ENV
from .config import SERVICES_CONFIG_ENV, load_registry

DEFAULT_APP = "rpc_toolbox.server.wsgi:app"
DEFAULT_CONFIG = "python:rpc_toolbox.server.gunicorn_config"
LOG_CONFIG_ENV = "RPC_LOG_CONFIG"

def popen_detached(cmd, env, pidfile: str | None = None):
    with open(os.devnull, "rb") as devnull_in, open(os.devnull, "wb") as devnull_out:
        proc = subprocess.Popen(
            cmd,
            env=env,
            stdin=devnull_in,
            stdout=devnull_out,
            stderr=devnull_out,
            start_new_session=True
        )

    if pidfile:
        Path(pidfile).write_text(str(proc.pid))

    return proc

def build_command(args: argparse.Namespace, env: dict) -> List[str]:
    cmd = [
        "gunicorn",
        args.app,
        "-b", f"{args.host}:{args.port}",
        "-c", args.config,
        "--threads", str(args.threads),
        "-t", str(args.timeout),
    ]
    if args.log:
        log_cfg = Path(__file__).resolve().parent / "logging_config.yaml"
        env[LOG_CONFIG_ENV] = str(log_cfg)
    return cmd

def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(prog="rpc-toolbox-server")
    p.add_argument("-H", "--host", default="0.0.0.0")
    p.add_argument("-d", "--detached", action="store_true", help="Run server in background (detach from terminal).")
    p.add_argument("-p", "--port", type=int, default=5000)
    p.add_argument("-T", "--threads", type=int, default=8, help="Request threads of the single worker process.")
    p.add_argument("-t", "--timeout", type=int, default=600)
    p.add_argument("-l", "--log", action="store_true", default=False)
    p.add_argument("-s", "--services", default="rpc-services.yaml", help="YAML services configuration.")
    p.add_argument("--url-prefix", default="/rpc")
    p.add_argument("--secret-key", default=None, help="Key signing the session cookie.")
    p.add_argument("--pidfile", default="rpc-toolbox-server.pid", help="PID file (with --detached).")
    p.add_argument("--app", default=DEFAULT_APP)
    p.add_argument("--config", default=DEFAULT_CONFIG)

    args = p.parse_args(argv)

    # fail here rather than inside gunicorn
    registry = load_registry(args.services)
    print(f"Services: {', '.join(registry.names())}")

    env = os.environ.copy()
    env[SERVICES_CONFIG_ENV] = str(Path(args.services).resolve())
    env[URL_PREFIX_ENV] = args.url_prefix
    if args.secret_key:
        env[SECRET_KEY_ENV] = args.secret_key

    cmd = build_command(args, env)
    print("Starting gunicorn...")
    if args.detached:
        popen_detached(cmd, env=env, pidfile=args.pidfile)
    else:
        try:
            subprocess.run(cmd, env=env, check=True)
        except KeyboardInterrupt:
            print("\nStopping server...")

if __name__ == "__main__":
    main()
