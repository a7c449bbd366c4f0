"""Scripted stand-in for a UCI engine, run as a subprocess by the tests.

Usage: python fake_uci_engine.py [--mode MODE] [--score N | --mate N]
       [--bestmove MOVE] [--log PATH] [--ignore-quit] [--stderr TEXT]

Modes:
    normal          answer every ``go`` with an info line and a bestmove
    hang            answer ``go`` with an info line, never a bestmove
    crash           exit with status 3 on ``go``
    crash-on-uci    exit with status 4 as soon as ``uci`` arrives
    slow-handshake  never answer ``uci``
"""

import argparse
import sys
import time


def _emit(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--mode", default="normal")
    parser.add_argument("--score", type=int, default=25)
    parser.add_argument("--mate", type=int, default=None)
    parser.add_argument("--bestmove", default="e2e4")
    parser.add_argument("--log", default=None)
    parser.add_argument("--ignore-quit", action="store_true")
    parser.add_argument("--stderr", default=None)
    return parser.parse_args()


def _answer_go(args: argparse.Namespace, depth: str) -> None:
    if args.mode == "crash":
        sys.exit(3)
    _emit("info string fake engine thinking")
    if args.mate is not None:
        _emit(f"info depth {depth} seldepth 7 score mate {args.mate} nodes 10 pv {args.bestmove}")
    else:
        _emit(f"info depth {depth} seldepth 7 score cp {args.score} nodes 10 pv {args.bestmove}")
    if args.mode == "hang":
        return
    _emit(f"bestmove {args.bestmove} ponder e7e5")


def main() -> int:
    args = _parse_args()
    log = open(args.log, "a", encoding="utf-8") if args.log else None
    if args.stderr:
        sys.stderr.write(args.stderr + "\n")
        sys.stderr.flush()
    try:
        for raw in sys.stdin:
            command = raw.strip()
            if log:
                log.write(command + "\n")
                log.flush()
            if command == "uci":
                if args.mode == "crash-on-uci":
                    return 4
                if args.mode == "slow-handshake":
                    time.sleep(60)
                    continue
                _emit("id name FakeEngine")
                _emit("uciok")
            elif command == "isready":
                _emit("readyok")
            elif command.startswith("go"):
                tokens = command.split()
                depth = tokens[tokens.index("depth") + 1] if "depth" in tokens else "1"
                _answer_go(args, depth)
            elif command == "quit":
                if args.ignore_quit:
                    continue
                return 0
    finally:
        if log:
            log.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
