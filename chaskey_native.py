#   chaskey_native.py
#   2026-10-19  Chaskey through the C library built from native/chaskey.c.

#   === Native backend

import ctypes
import ctypes.util
import logging
import os

from chaskey import Chaskey, ChaskeyContext, CHASKEY_ROUNDS, BLOCK_SZ, TAG_SZ

logger = logging.getLogger(__name__)

_u32x4 = ctypes.c_uint32 * 4


class NativeBackendError(OSError):
    """ The native Chaskey library could not be loaded or does not match. """


class _Block(ctypes.Union):
    _fields_ = [
        ('u8', ctypes.c_uint8 * BLOCK_SZ),
        ('u32', _u32x4),
    ]


class ChaskeyCtx(ctypes.Structure):
    """ Mirror of chaskey_ctx_t. """
    _fields_ = [
        ('tag', _Block),
        ('k1', _u32x4),
        ('k2', _u32x4),
        ('len', ctypes.c_size_t),
        ('m', _Block),
    ]


def _find_library(path):
    if path is None:
        path = os.environ.get('CHASKEY_LIB')
    if path is None:
        path = ctypes.util.find_library('chaskey')
    if path is None:
        raise NativeBackendError(
            'Cannot find the Chaskey library; set CHASKEY_LIB or pass path')
    return path


def _setup_ffi_types(lib):
    p_u32   = ctypes.POINTER(ctypes.c_uint32)
    p_ctx   = ctypes.POINTER(ChaskeyCtx)

    lib.chaskey_rounds.argtypes     = []
    lib.chaskey_rounds.restype      = ctypes.c_int

    lib.chaskey_subkeys.argtypes    = [ p_u32, p_u32, p_u32 ]
    lib.chaskey_subkeys.restype     = None

    lib.chaskey_init.argtypes       = [ p_ctx, p_u32, p_u32, p_u32 ]
    lib.chaskey_init.restype        = None

    lib.chaskey_process.argtypes    = [ p_ctx, ctypes.c_char_p, ctypes.c_size_t ]
    lib.chaskey_process.restype     = None

    lib.chaskey_finish.argtypes     = [ p_ctx ]
    lib.chaskey_finish.restype      = None

    lib.chaskey_tag.argtypes        = [ p_ctx ]
    lib.chaskey_tag.restype         = ctypes.c_void_p


def load(rounds=CHASKEY_ROUNDS, path=None):
    """ Load the native library and return a NativeChaskey for it.

        The library is looked up at path, then $CHASKEY_LIB, then through
        ctypes.util.find_library('chaskey'). Raises NativeBackendError if
        it cannot be loaded or was built for another round count.
    """
    path = _find_library(path)
    logger.debug('loading Chaskey library %s', path)
    try:
        lib = ctypes.CDLL(path)
        _setup_ffi_types(lib)
    except (OSError, AttributeError) as e:
        logger.warning('Chaskey library %s unusable: %s', path, e)
        raise NativeBackendError(f'Cannot load Chaskey library {path}: {e}') from e

    built = lib.chaskey_rounds()
    if built != rounds:
        logger.warning('Chaskey library %s built for %d rounds, not %d',
                       path, built, rounds)
        raise NativeBackendError(
            f'Chaskey library {path} built for {built} rounds, not {rounds}')

    logger.debug('loaded Chaskey library %s (%d rounds)', path, built)
    return NativeChaskey(lib, rounds=rounds, alg_id=f'CHASKEY_{rounds}_NATIVE')


class NativeChaskey(Chaskey):
    """ Chaskey parameter set whose subkeys and contexts live in C. """

    def __init__(self, lib, rounds=CHASKEY_ROUNDS, alg_id='CHASKEY_12_NATIVE'):
        super().__init__(rounds=rounds, alg_id=alg_id)
        self.lib = lib

    def subkeys(self, key):
        k1, k2 = _u32x4(), _u32x4()
        self.lib.chaskey_subkeys(k1, k2, _u32x4(*key))
        return (list(k1), list(k2))

    def new(self, key, msg=None):
        k   =   self.key_words(key)
        ctx =   NativeContext(self, k, *self.subkeys(k))
        if msg is not None:
            ctx.update(msg)
        return ctx


class NativeContext(ChaskeyContext):
    """ ChaskeyContext over a ChaskeyCtx owned by this object. """

    def __init__(self, cs, key, k1, k2):
        self.cs         =   cs
        self.ctx        =   ChaskeyCtx()
        self.finished   =   False
        cs.lib.chaskey_init(ctypes.byref(self.ctx),
                            _u32x4(*key), _u32x4(*k1), _u32x4(*k2))

    def copy(self):
        c           =   NativeContext.__new__(NativeContext)
        c.cs        =   self.cs
        c.ctx       =   ChaskeyCtx.from_buffer_copy(self.ctx)
        c.finished  =   self.finished
        return c

    def tag(self):
        p = self.cs.lib.chaskey_tag(ctypes.byref(self.ctx))
        return ctypes.string_at(p, TAG_SZ)

    def _absorb(self, m):
        buf = m.tobytes()
        self.cs.lib.chaskey_process(ctypes.byref(self.ctx), buf, len(buf))

    def _finish(self):
        self.cs.lib.chaskey_finish(ctypes.byref(self.ctx))
