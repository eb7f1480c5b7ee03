"""Tests for helix configuration and the command line driver."""

import io

import pytest

from trackhelix.helix import Helix, HelixError
import main


def test_params_override_defaults_per_instance():
    helix = Helix(params={'nearest__iterations': 5})
    assert helix.params['nearest__iterations'] == 5
    assert Helix.default_params['nearest__iterations'] == 20
    assert Helix().params['nearest__iterations'] == 20


def test_unknown_params_are_rejected():
    with pytest.raises(HelixError):
        Helix(params={'nearest__iteration': 5})


def test_load_params(tmp_path):
    path = tmp_path / 'params.dat'
    path.write_text("{'tolerance': 1e-6, 'helix_distance__turns': 2}")
    params = main.loadParams([str(path)], ['helix_distance__turns=3', 'helix_distance__refine_3d=True'])
    assert params['tolerance'] == 1e-6
    assert params['helix_distance__turns'] == 3
    assert params['helix_distance__refine_3d'] is True
    with pytest.raises(RuntimeError):
        main.loadParams(None, ['tolerance'])


def test_helix_distance_requires_second_helix():
    with pytest.raises(SystemExit):
        main.parseArgs(['--vp', '0', '0', '0', '1', '0', '1', '--helix-distance'])


def test_report_runs_all_queries():
    args = main.parseArgs(['--vp', '0', '0', '0', '1', '0', '1',
                           '--other-vp', '0', '0', '5', '1', '0', '1', '--other-charge', '1',
                           '--z', '100', '--z', '-50',
                           '--cylinder', '50', '500',
                           '--plane', '100', '0', '0', '1',
                           '--point', '1', '2', '3',
                           '--line', '0', '10', '0', '1', '0', '0',
                           '--helix-distance', '--log', '2'])
    stream = io.StringIO()
    results = main.HelixReport(args, main.loadParams(None, []), stream=stream).run()
    assert list(results) == ['helices', 'z', 'cylinder', 'plane', 'point', 'line', 'helix_distance']
    assert len(results['helices']) == 2
    assert list(results['z']['found']) == [True, True]
    assert results['helix_distance']['distance'].iloc[0] == pytest.approx(5.0)
    assert "helix distance:" in stream.getvalue()


def test_report_from_canonical_parameters():
    args = main.parseArgs(['--canonical', '0.5', '1.0', '2.0', '0.001', '0.3', '--b-field', '3.5'])
    stream = io.StringIO()
    results = main.HelixReport(args, {}, stream=stream).run()
    assert results['helices']['omega'].iloc[0] == pytest.approx(0.001)
    assert main.main(['--circle', '0', '0', '100', '0.01', '0', '1', '0', '--log', '-1']) == 0
