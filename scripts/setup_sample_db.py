"""Launch a sample PostgreSQL or MySQL Docker container and write a dbguide config."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG = Path("database.ini")
DEFAULT_PASSWORD = "dbguide"
DEFAULT_DB = "dbguide_demo"
DEFAULT_USER = "dbguide"


@dataclass(frozen=True)
class Engine:
    section: str
    image: str
    container: str
    internal_port: int
    default_port: int

    def env(self, user: str, password: str, database: str) -> list[str]:
        if self.section == "mysql":
            pairs = {
                "MYSQL_ROOT_PASSWORD": password,
                "MYSQL_DATABASE": database,
                "MYSQL_USER": user,
                "MYSQL_PASSWORD": password,
            }
        else:
            pairs = {
                "POSTGRES_PASSWORD": password,
                "POSTGRES_DB": database,
                "POSTGRES_USER": user,
            }
        flags: list[str] = []
        for key, value in pairs.items():
            flags.extend(["-e", f"{key}={value}"])
        return flags

    def ready_probe(self, user: str, password: str) -> list[str]:
        if self.section == "mysql":
            return ["mysqladmin", "ping", "-h", "127.0.0.1", "-u", user, f"-p{password}", "--silent"]
        return ["pg_isready", "-U", user]


ENGINES = {
    "postgresql": Engine("postgresql", "postgres:16-alpine", "dbguide-postgres", 5432, 5544),
    "mysql": Engine("mysql", "mysql:8.4", "dbguide-mysql", 3306, 3307),
}


def run(cmd: list[str], *, check: bool = True, **kwargs) -> subprocess.CompletedProcess[str]:
    print("$", " ".join(cmd))
    return subprocess.run(cmd, check=check, text=True, **kwargs)


def container_exists(name: str) -> bool:
    result = subprocess.run(
        ["docker", "ps", "-a", "--filter", f"name={name}", "--format", "{{.ID}}"],
        text=True,
        capture_output=True,
    )
    return bool(result.stdout.strip())


def start_container(engine: Engine, name: str, port: int, user: str, password: str, database: str) -> None:
    if container_exists(name):
        print(f"Container '{name}' already exists. Reusing it.")
        run(["docker", "start", name], check=False)
    else:
        run(
            [
                "docker",
                "run",
                "-d",
                "--name",
                name,
                *engine.env(user, password, database),
                "-p",
                f"{port}:{engine.internal_port}",
                engine.image,
            ]
        )
    wait_for_start(engine, name, user, password)


def wait_for_start(engine: Engine, name: str, user: str, password: str, retries: int = 30, delay: float = 1.0) -> None:
    for _ in range(retries):
        result = subprocess.run(
            ["docker", "exec", name, *engine.ready_probe(user, password)],
            text=True,
            capture_output=True,
        )
        if result.returncode == 0:
            return
        time.sleep(delay)
    print("Warning: database did not report ready state; continuing anyway.")


def write_config(path: Path, engine: Engine, port: int, user: str, password: str, database: str) -> None:
    if path.exists():
        print(f"{path} already exists; leaving it as-is.")
        return
    lines = [
        f"[{engine.section}]",
        "host=localhost",
        f"port={port}",
        f"database={database}",
        f"user={user}",
        f"password={password}",
    ]
    path.write_text("\n".join(lines) + "\n")
    print(f"Wrote [{engine.section}] settings to {path}.")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--engine", choices=sorted(ENGINES), default="postgresql", help="Database server to start")
    parser.add_argument("--container", default=None, help="Docker container name")
    parser.add_argument("--port", type=int, default=None, help="Host port to expose the server on")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Database password")
    parser.add_argument("--database", default=DEFAULT_DB, help="Database name to create")
    parser.add_argument("--user", default=DEFAULT_USER, help="Database user")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="Config file to write")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    engine = ENGINES[args.engine]
    name = args.container or engine.container
    port = args.port or engine.default_port
    try:
        start_container(engine, name, port, args.user, args.password, args.database)
    except FileNotFoundError:
        print("Docker is not installed or not on PATH.")
        return 1
    write_config(args.config, engine, port, args.user, args.password, args.database)
    print(f"Sample database is ready. Run: dbguide --config {args.config}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
