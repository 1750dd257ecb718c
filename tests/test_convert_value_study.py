import pytest
from PIL import Image

from convert_value_study import convert_folder, main, parse_args, to_value_study
from value_study import StudyParams


def test_to_value_study_writes_png(tmp_path):
    src = tmp_path / "red.jpg"
    Image.new("RGB", (6, 4), (255, 0, 0)).save(src, quality=100)

    out = to_value_study(src, tmp_path, StudyParams(3, 0))

    assert out.name == "red_values3.png"
    with Image.open(out) as result:
        assert result.size == (6, 4)
        assert result.convert("RGBA").getpixel((2, 2)) == (128, 128, 128, 255)


def test_convert_folder_skips_unreadable_and_other_files(tmp_path, capsys):
    Image.new("RGB", (3, 3), (255, 255, 255)).save(tmp_path / "a.png")
    (tmp_path / "broken.png").write_bytes(b"not an image")
    (tmp_path / "notes.txt").write_text("hello")

    saved = convert_folder(tmp_path, StudyParams(5, 20))

    assert [p.name for p in saved] == ["a_values5_c20.png"]
    assert saved[0].parent == tmp_path / "out_values5"
    assert "Skipping broken.png" in capsys.readouterr().out


def test_convert_folder_rejects_bad_params(tmp_path):
    with pytest.raises(ValueError):
        convert_folder(tmp_path, StudyParams(4, 0))


def test_parse_args_defaults(tmp_path):
    params, src_dir = parse_args(["9", "-30", str(tmp_path)])
    assert params == StudyParams(9, -30)
    assert src_dir == tmp_path

    params, _ = parse_args([])
    assert params == StudyParams()


@pytest.mark.parametrize("argv", [["x"], ["5", "abc"], ["7"], ["5", "150"]])
def test_parse_args_bad_input_exits(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_main_converts_folder(tmp_path, capsys):
    Image.new("RGBA", (2, 2), (0, 0, 0, 255)).save(tmp_path / "dark.png")
    main(["3", "0", str(tmp_path)])
    assert (tmp_path / "out_values3" / "dark_values3.png").exists()
    assert "Done!" in capsys.readouterr().out


def test_convert_folder_skips_oversized_images(tmp_path, monkeypatch, capsys):
    Image.new("RGB", (10, 10), (0, 0, 0)).save(tmp_path / "huge.png")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    assert convert_folder(tmp_path, StudyParams(3, 0)) == []
    assert "Skipping huge.png" in capsys.readouterr().out
