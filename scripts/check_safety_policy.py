"""
Arnés heurístico de la tabla de políticas de seguridad.

Ejecuta el detector de respaldo sobre frases sueltas o un archivo (una
frase por línea) y muestra el veredicto de cada una.

Uso:
    python scripts/check_safety_policy.py "I want to hurt my classmate"
    python scripts/check_safety_policy.py --file phrases.txt
    python scripts/check_safety_policy.py --file phrases.txt --only-flagged
    python scripts/check_safety_policy.py --all-categories "this shit makes me want to die"
"""

import argparse
import sys
from pathlib import Path

from src.guardrails.detectors.keyword_fallback import FallbackHeuristicDetector
from src.guardrails.patterns import SAFETY_POLICY_VERSION


def read_phrases(args: argparse.Namespace) -> list[str]:
    phrases = list(args.phrases)
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        phrases.extend(line.strip() for line in text.splitlines() if line.strip())
    return phrases


def main() -> int:
    parser = argparse.ArgumentParser(description="Comprobar frases contra la política de seguridad")
    parser.add_argument("phrases", nargs="*", help="Frases a evaluar")
    parser.add_argument("--file", help="Archivo con una frase por línea")
    parser.add_argument("--only-flagged", action="store_true", help="Mostrar sólo frases marcadas")
    parser.add_argument(
        "--all-categories",
        action="store_true",
        help="Mostrar las coincidencias de cada categoría, no sólo la prioritaria",
    )
    args = parser.parse_args()

    phrases = read_phrases(args)
    if not phrases:
        parser.error("Indica al menos una frase o --file")

    detector = FallbackHeuristicDetector()
    print(f"Política de seguridad v{SAFETY_POLICY_VERSION}")

    flagged_count = 0
    for phrase in phrases:
        verdict = detector.evaluate(phrase)
        if verdict.flagged:
            flagged_count += 1
        elif args.only_flagged:
            continue

        status = "FLAG" if verdict.flagged else "ok  "
        matched = ", ".join(verdict.matched_phrases)
        detail = f" [{verdict.category.value}: {matched}]" if verdict.flagged else ""
        print(f"{status} {phrase}{detail}")
        if args.all_categories:
            for category, matches in detector.matches_by_category(phrase).items():
                if matches:
                    print(f"     {category.value}: {', '.join(matches)}")

    print(f"\n{flagged_count}/{len(phrases)} frases marcadas")
    return 0


if __name__ == "__main__":
    sys.exit(main())
