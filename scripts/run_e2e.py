"""
Script para ejecutar tests E2E.

Uso:
    python scripts/run_e2e.py                   # Ejecuta tests con modelos simulados (rápido)
    python scripts/run_e2e.py --real            # Ejecuta contra los modelos por defecto
    python scripts/run_e2e.py --real --tutor-model ollama/llama3.1:8b --safety-model ollama/llama3.1:8b
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Ejecutar tests E2E")
    parser.add_argument("--real", action="store_true", help="Usar modelos reales en lugar de simulados")
    parser.add_argument("--tutor-model", help="Sobrescribir modelo del tutor (ej: ollama/llama3.1:8b)")
    parser.add_argument("--safety-model", help="Sobrescribir modelo del clasificador de seguridad")
    args = parser.parse_args()

    root_dir = Path(__file__).parent.parent
    test_dir = root_dir / "tests" / "e2e"

    pytest_args = [
        str(test_dir),
        "-v",
        "--tb=short",
    ]

    if args.real:
        print("MODO REAL: ejecutando tests contra modelos LLM reales...")
        os.environ["E2E_REAL_MODELS"] = "true"
        pytest_args.append("--integration")

        if args.tutor_model:
            print(f"   Tutor Model: {args.tutor_model}")
            os.environ["SELFEVAL_MODEL_DEFAULTS__TUTOR_MODEL"] = args.tutor_model

        if args.safety_model:
            print(f"   Safety Model: {args.safety_model}")
            os.environ["SELFEVAL_MODEL_DEFAULTS__SAFETY_MODEL"] = args.safety_model
    else:
        print("MODO SIMULADO: ejecutando tests con respuestas guionizadas...")
        os.environ.pop("E2E_REAL_MODELS", None)

    cmd = [sys.executable, "-m", "pytest"] + pytest_args
    print(f"Ejecutando: {' '.join(cmd)}")
    sys.exit(subprocess.call(cmd))


if __name__ == "__main__":
    main()
