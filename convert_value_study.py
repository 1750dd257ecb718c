#!/usr/bin/env python3
"""Convert a folder of images to value studies.

Usage: convert_value_study.py [levels] [contrast] [src_dir]
"""

import sys
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from value_study import DEFAULT_LEVELS, StudyParams, ValueStudySession, study_filename

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"}


def to_value_study(img_path: Path, out_dir: Path, params: StudyParams) -> Path:
    """Convert one image to a value study PNG and save it."""
    with Image.open(img_path) as img:
        session = ValueStudySession.from_pil(img)

    out_path = out_dir / study_filename(img_path.stem, params)
    session.render_image(params).save(out_path)
    print(f"  Saved: {out_path}")
    return out_path


def convert_folder(src_dir: Path, params: StudyParams, out_dir: Path = None) -> list:
    params.validate()
    out_dir = out_dir or src_dir / f"out_values{params.levels}"
    out_dir.mkdir(exist_ok=True)

    saved = []
    for img_path in sorted(src_dir.iterdir()):
        if img_path.suffix.lower() not in IMAGE_EXTENSIONS or not img_path.is_file():
            continue
        print(f"Processing: {img_path.name}")
        try:
            saved.append(to_value_study(img_path, out_dir, params))
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as err:
            print(f"  Skipping {img_path.name}: {err}")
    return saved


def parse_args(argv):
    try:
        levels = int(argv[0]) if len(argv) > 0 else DEFAULT_LEVELS
        contrast = int(argv[1]) if len(argv) > 1 else 0
    except ValueError as err:
        raise SystemExit(f"usage: convert_value_study.py [levels] [contrast] [src_dir]\n{err}")
    src_dir = Path(argv[2]) if len(argv) > 2 else Path(__file__).parent

    params = StudyParams(levels, contrast)
    try:
        params.validate()
    except ValueError as err:
        raise SystemExit(f"Invalid parameters: {err}")
    return params, src_dir


def main(argv=None):
    params, src_dir = parse_args(sys.argv[1:] if argv is None else argv)

    print(f"Converting images to {params.levels} values (contrast {params.contrast})...")
    convert_folder(src_dir, params)
    print("Done!")


if __name__ == "__main__":
    main()
