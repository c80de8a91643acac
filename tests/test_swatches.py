from gallery_api.colors import compute_hue
from gallery_api.swatches import hsv_to_rgb, main, make_swatches


def test_hsv_to_rgb_primaries():
    assert hsv_to_rgb(0, 1, 1) == (255, 0, 0)
    assert hsv_to_rgb(120, 1, 1) == (0, 255, 0)
    assert hsv_to_rgb(240, 1, 1) == (0, 0, 255)
    assert hsv_to_rgb(0, 0, 0.5) == (128, 128, 128)


def test_make_swatches_spreads_hues(tmp_path):
    paths = make_swatches(count=4, size=8, out_dir=tmp_path)
    assert [p.name for p in paths] == ["swatch_0.png", "swatch_90.png", "swatch_180.png", "swatch_270.png"]
    assert [compute_hue(p.read_bytes()) for p in paths] == [0, 90, 180, 270]


def test_cli_writes_files(tmp_path):
    assert main(["--count", "3", "--size", "4", "--out", str(tmp_path / "out")]) == 0
    assert len(list((tmp_path / "out").glob("swatch_*.png"))) == 3
