import shutil
import subprocess
from pathlib import Path

import pytest

import chaskey_native
from chaskey import REF_KEY, chaskey_8, chaskey_12
from chaskey_native import NativeBackendError

SRC = Path(__file__).resolve().parents[1] / 'native' / 'chaskey.c'
CC = shutil.which('cc') or shutil.which('gcc') or shutil.which('clang')

needs_cc = pytest.mark.skipif(CC is None, reason='no C compiler')


def build(out_dir, rounds):
    lib = out_dir / f'libchaskey{rounds}.so'
    subprocess.run([CC, '-O2', '-shared', '-fPIC',
                    f'-DCHASKEY_ROUNDS={rounds}', '-o', str(lib), str(SRC)],
                   check=True)
    return lib


@pytest.fixture(scope='module')
def libs(tmp_path_factory):
    out = tmp_path_factory.mktemp('native')
    return {r: build(out, r) for r in (8, 12)}


@pytest.fixture(scope='module', params=[8, 12])
def pair(request, libs):
    rounds = request.param
    native = chaskey_native.load(rounds=rounds, path=str(libs[rounds]))
    core = chaskey_8 if rounds == 8 else chaskey_12
    return core, native


@needs_cc
def test_subkeys_match(pair):
    core, native = pair
    assert native.subkeys(REF_KEY) == core.subkeys(REF_KEY)


@needs_cc
def test_tags_match(pair):
    core, native = pair
    data = bytes(range(256)) * 2
    for n in range(0, 130):
        assert native.mac(REF_KEY, data[:n]) == core.mac(REF_KEY, data[:n])
    assert native.mac(REF_KEY, data) == core.mac(REF_KEY, data)


@needs_cc
def test_incremental_and_copy(pair):
    core, native = pair
    data = bytes(range(100))
    ctx = native.new(REF_KEY)
    pos = 0
    for cut in (0, 7, 16, 16, 33, 100):
        ctx.update(data[pos:cut])
        pos = cut
        assert ctx.digest() == core.mac(REF_KEY, data[:cut])
    ctx = native.new(REF_KEY, data[:20])
    snap = ctx.copy()
    ctx.update(data[20:])
    assert snap.commit() == core.mac(REF_KEY, data[:20])
    assert ctx.commit() == core.mac(REF_KEY, data)
    with pytest.raises(TypeError):
        ctx.update(b'x')


@needs_cc
def test_hasher_matches(pair):
    core, native = pair
    a = native.hasher(REF_KEY)
    b = core.hasher(REF_KEY)
    for n in range(40):
        a.write(bytes([n]))
        b.write(bytes([n]))
        assert a.finish() == b.finish()


@needs_cc
def test_round_mismatch_rejected(libs):
    with pytest.raises(NativeBackendError):
        chaskey_native.load(rounds=12, path=str(libs[8]))


def test_missing_library(tmp_path):
    with pytest.raises(NativeBackendError):
        chaskey_native.load(path=str(tmp_path / 'libnothere.so'))


def test_no_library_configured(monkeypatch):
    monkeypatch.delenv('CHASKEY_LIB', raising=False)
    monkeypatch.setattr(chaskey_native.ctypes.util, 'find_library',
                        lambda name: None)
    with pytest.raises(NativeBackendError):
        chaskey_native.load()


def test_error_is_oserror():
    assert issubclass(NativeBackendError, OSError)
