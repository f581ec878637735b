"""
Run every orchestrator call on one photo and print the results.

Usage:
    python -m breedinfer.scripts.predict_image path/to/cow.jpg [--reprobe]

Backend choice follows the usual env (.env, PYTORCH_SERVICE_URL, BREEDINFER_MODELS_DIR, ...).
"""
import logging
import sys
from pathlib import Path

from breedinfer.orchestrator.errors import ImageDecodeError
from breedinfer.orchestrator.facade import Orchestrator


def main(argv: list[str]) -> int:
    if not argv:
        print(__doc__)
        return 2
    path = Path(argv[0])
    if not path.is_file():
        print(f"[ERROR] {path} not found")
        return 1

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    orch = Orchestrator()
    try:
        if "--reprobe" in argv[1:]:
            orch.force_reprobe()
        return report(orch, path)
    finally:
        orch.close()


def report(orch: Orchestrator, path: Path) -> int:
    image_bytes = path.read_bytes()
    print(f"\nbackend: {orch.backend.value}\n")
    try:
        preds = orch.predict_breed(image_bytes)
        species = orch.detect_species(image_bytes)
    except ImageDecodeError as e:
        print(f"[ERROR] {e}")
        return 1

    for p in preds:
        print(f"  {p.breed:<24} {p.confidence:.3f}")
    print(f"\nspecies:    {species.species} ({species.confidence:.2f})")
    print(f"crossbreed: {orch.is_crossbreed(preds)}  (heuristic)")

    hm = orch.generate_heatmap(image_bytes, preds)
    if hm is None:
        print("heatmap:    none")
    elif hm.kind == "encoded_image":
        out = path.with_name(f"{path.stem}_heatmap.png")
        out.write_bytes(hm.data)
        print(f"heatmap:    overlay -> {out}")
    else:
        print(f"heatmap:    grid {hm.width}x{hm.height}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
