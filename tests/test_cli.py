import json

import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image

from reliefmesh.cli import cli


@pytest.fixture
def image_path(tmp_path, gradient_image):
    path = tmp_path / "input.png"
    Image.fromarray(gradient_image).save(path)
    return path


def test_convert_writes_a_mesh(image_path, tmp_path):
    out = tmp_path / "out.stl"
    result = CliRunner().invoke(cli, ['convert', str(image_path),
                                      '-o', str(out), '--resolution', '8'])
    assert result.exit_code == 0, result.output
    assert out.exists()
    assert "[100%]" in result.output
    assert "[✓]" in result.output


def test_convert_accepts_overrides(image_path, tmp_path):
    out = tmp_path / "out.obj"
    result = CliRunner().invoke(cli, [
        'convert', str(image_path), '-o', str(out), '-r', '6',
        '--projection', 'cookie', '--set', 'bilateralFilter=0',
        '--set', 'invertDepth=true',
    ])
    assert result.exit_code == 0, result.output
    assert out.exists()


def test_convert_rejects_malformed_override(image_path, tmp_path):
    result = CliRunner().invoke(cli, ['convert', str(image_path),
                                      '-o', str(tmp_path / "x.stl"),
                                      '--set', 'nokey'])
    assert result.exit_code != 0
    assert "key=value" in result.output


def test_convert_reports_out_of_range_setting(image_path, tmp_path):
    result = CliRunner().invoke(cli, ['convert', str(image_path),
                                      '-o', str(tmp_path / "x.stl"),
                                      '--set', 'bilateralFilter=99'])
    assert result.exit_code != 0
    assert "bilateral_filter" in result.output


def test_presets_lists_every_level():
    result = CliRunner().invoke(cli, ['presets'])
    assert result.exit_code == 0
    for name in ('low', 'med', 'high', 'ultra', 'extreme'):
        assert name in result.output
    assert "320x320" in result.output


def test_info_reports_a_closed_mesh(image_path, tmp_path):
    out = tmp_path / "out.stl"
    runner = CliRunner()
    assert runner.invoke(cli, ['convert', str(image_path), '-o', str(out),
                               '-r', '5']).exit_code == 0

    result = runner.invoke(cli, ['info', str(out)])
    assert result.exit_code == 0, result.output
    summary = json.loads(result.output[result.output.index('{'):])
    assert summary['faces'] == 2 * 2 * 4 * 4 + 4 * 2 * 4
    assert summary['watertight'] is True


def test_convert_rotates_and_scales(image_path, tmp_path):
    import trimesh

    runner = CliRunner()
    plain = tmp_path / "plain.stl"
    scaled = tmp_path / "scaled.stl"
    assert runner.invoke(cli, ['convert', str(image_path), '-o', str(plain),
                               '-r', '6']).exit_code == 0
    result = runner.invoke(cli, ['convert', str(image_path), '-o', str(scaled),
                                 '-r', '6', '--scale', '2'])
    assert result.exit_code == 0, result.output

    a = trimesh.load(str(plain), force='mesh')
    b = trimesh.load(str(scaled), force='mesh')
    np.testing.assert_allclose(b.extents, a.extents * 2, rtol=1e-5)

    turned = tmp_path / "turned.stl"
    result = runner.invoke(cli, ['convert', str(image_path), '-o', str(turned),
                                 '-r', '6', '--rotate', 'x',
                                 '--rotate-degrees', '90'])
    assert result.exit_code == 0, result.output
    c = trimesh.load(str(turned), force='mesh')
    # a quarter turn about X swaps the Y and Z extents
    np.testing.assert_allclose(c.extents[[1, 2]], a.extents[[2, 1]], rtol=1e-4)


def test_convert_rejects_non_positive_scale(image_path, tmp_path):
    result = CliRunner().invoke(cli, ['convert', str(image_path),
                                      '-o', str(tmp_path / "x.stl"),
                                      '-r', '4', '--scale', '0'])
    assert result.exit_code != 0
    assert "positive" in result.output
