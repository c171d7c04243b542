#!/usr/bin/env python3
"""
Script per avviare il backend FastAPI della conferenza NF-e
"""
from __future__ import annotations

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Avvia l'API di conferenza NF-e x tabela de preços.")
    parser.add_argument("--host", default="0.0.0.0", help="Indirizzo di bind del server.")
    parser.add_argument(
        "--port",
        default=3000,
        type=int,
        help="Porta di ascolto (default: 3000).",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Ricaricamento automatico durante lo sviluppo.",
    )
    args = parser.parse_args()

    print(f"API disponibile su: http://localhost:{args.port}")
    uvicorn.run(
        "conferencia.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=["conferencia"] if args.reload else None,
    )


if __name__ == "__main__":
    main()
