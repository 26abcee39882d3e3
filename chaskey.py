#   chaskey.py
#   2026-10-19  Chaskey keyed MAC, incremental interface.

#   === Chaskey

import sys

from Crypto.Hash import BLAKE2s
from Crypto.Random import get_random_bytes

BLOCK_SZ        =   16
TAG_SZ          =   16
CHASKEY_ROUNDS  =   12
M32             =   0xFFFFFFFF

#   reference key of the published test vectors
REF_KEY         =   [ 0x833D3433, 0x009669A2, 0xE0FA72B4, 0x68067688 ]


def rotl32(x, b):
    return ((x << b) | (x >> (32 - b))) & M32

def le_words(bs):
    """ 16 bytes -> 4 little-endian 32-bit words. """
    return  [ int.from_bytes(bs[i : i + 4], byteorder='little')
                for i in range(0, BLOCK_SZ, 4) ]

def le_bytes(v):
    """ 4 words -> 16 bytes, little-endian word order. """
    bs = b''
    for x in v:
        bs += x.to_bytes(4, byteorder='little')
    return bs

def mix(v, l):
    v[0]    ^=  l[0]
    v[1]    ^=  l[1]
    v[2]    ^=  l[2]
    v[3]    ^=  l[3]


class Chaskey:

    #   initialize
    def __init__(self, rounds=CHASKEY_ROUNDS, alg_id='CHASKEY_12'):
        if rounds not in (8, 12):
            raise ValueError('Chaskey round count must be 8 or 12')
        self.rounds     =   rounds
        self.algname    =   alg_id
        self.key_sz     =   16
        self.digest_sz  =   TAG_SZ

    #   === Permutation and subkeys

    def permute(self, v):
        """ Apply self.rounds ARX rounds to the state v[0..3] in place. """
        v0, v1, v2, v3 = v
        for _ in range(self.rounds):
            v0  =   (v0 + v1) & M32
            v1  =   rotl32(v1, 5) ^ v0
            v0  =   rotl32(v0, 16)

            v2  =   (v2 + v3) & M32
            v3  =   rotl32(v3, 8) ^ v2

            v0  =   (v0 + v3) & M32
            v3  =   rotl32(v3, 13) ^ v0

            v2  =   (v2 + v1) & M32
            v1  =   rotl32(v1, 7) ^ v2
            v2  =   rotl32(v2, 16)
        v[0], v[1], v[2], v[3] = v0, v1, v2, v3

    def timestwo(self, k):
        """ Multiply by x in GF(2^128), little-endian words. """
        return  [   ((k[0] << 1) & M32) ^ (0x87 if k[3] >> 31 else 0),
                    ((k[1] << 1) & M32) | (k[0] >> 31),
                    ((k[2] << 1) & M32) | (k[1] >> 31),
                    ((k[3] << 1) & M32) | (k[2] >> 31) ]

    def subkeys(self, key):
        """ (k1, k2) = (2*K, 4*K). """
        k1  =   self.timestwo(key)
        k2  =   self.timestwo(k1)
        return (k1, k2)

    def key_words(self, key):
        """ Accept four 32-bit words or 16 bytes (little-endian words). """
        if isinstance(key, (bytes, bytearray, memoryview)):
            if len(key) != self.key_sz:
                raise ValueError('Chaskey key must be 128 bits')
            return le_words(bytes(key))
        key = list(key)
        if len(key) != 4 or any(not 0 <= x <= M32 for x in key):
            raise ValueError('Chaskey key must be 128 bits')
        return key

    #   === Interface

    def new(self, key, msg=None):
        """ Fresh MAC context for key, optionally absorbing msg. """
        k   =   self.key_words(key)
        ctx =   ChaskeyContext(self, k, *self.subkeys(k))
        if msg is not None:
            ctx.update(msg)
        return ctx

    def mac(self, key, msg):
        """ One-shot 16-byte tag of msg under key. """
        return self.new(key, msg).commit()

    def hasher(self, key):
        return ChaskeyHasher(self.new(key))


class ChaskeyContext:
    """ Running MAC state: tag words, pending block and byte count.
        Absorb with process() or update(), finish with commit(). Use
        copy() or digest() to read a tag while keeping the context. """

    digest_size = TAG_SZ

    def __init__(self, cs, key, k1, k2):
        self.cs         =   cs
        self.v          =   list(key)
        self.k1         =   list(k1)
        self.k2         =   list(k2)
        self.len        =   0
        self.m          =   bytearray(BLOCK_SZ)
        self.finished   =   False

    def copy(self):
        c           =   ChaskeyContext(self.cs, self.v, self.k1, self.k2)
        c.len       =   self.len
        c.m         =   bytearray(self.m)
        c.finished  =   self.finished
        return c

    def process(self, m):
        """ Absorb bytes m. """
        if self.finished:
            raise TypeError('process() cannot be called after commit()')
        self._absorb(memoryview(m).cast('B'))
        return self

    def commit(self):
        """ Finalize and return the 16-byte tag. """
        if self.finished:
            raise TypeError('commit() cannot be called twice')
        self._finish()
        self.finished = True
        return self.tag()

    def tag(self):
        return le_bytes(self.v)

    def _absorb(self, m):
        cs  =   self.cs
        i   =   self.len & (BLOCK_SZ - 1)
        p   =   0
        while p < len(m):
            #   permute the previous full block before starting a new one
            if i == 0 and self.len > 0:
                cs.permute(self.v)
            n   =   min(len(m) - p, BLOCK_SZ - i)
            self.m[i : i + n] = m[p : p + n]
            self.len += n
            p   +=  n
            if i + n == BLOCK_SZ:
                mix(self.v, le_words(self.m))
            i   =   0

    def _finish(self):
        i   =   self.len & (BLOCK_SZ - 1)
        if self.len != 0 and i == 0:
            l = self.k1
        else:
            #   10* padding of the partial (or empty) last block
            self.m[i] = 0x01
            self.m[i + 1 :] = bytes(BLOCK_SZ - i - 1)
            mix(self.v, le_words(self.m))
            l = self.k2
        mix(self.v, l)
        self.cs.permute(self.v)
        mix(self.v, l)

    #   === Crypto.Hash style MAC object

    def update(self, msg):
        return self.process(msg)

    def digest(self):
        """ Tag of the data absorbed so far; the context stays usable. """
        if self.finished:
            return self.tag()
        return self.copy().commit()

    def hexdigest(self):
        return self.digest().hex()

    def verify(self, mac_tag):
        """ Raise ValueError if mac_tag is not the tag of this context. """
        secret  =   get_random_bytes(16)
        mac1    =   BLAKE2s.new(digest_bits=160, key=secret, data=mac_tag)
        mac2    =   BLAKE2s.new(digest_bits=160, key=secret,
                                data=self.digest())
        if mac1.digest() != mac2.digest():
            raise ValueError('MAC check failed')

    def hexverify(self, hex_mac_tag):
        self.verify(bytes.fromhex(hex_mac_tag))


class ChaskeyHasher:
    """ 64-bit keyed hash over a Chaskey context (first 8 tag bytes). """

    def __init__(self, ctx):
        self.ctx = ctx

    def write(self, buf):
        self.ctx.process(buf)

    def finish(self):
        tag = self.ctx.copy().commit()
        return int.from_bytes(tag[:8], byteorder=sys.byteorder)


#   === Chaskey parameter sets

chaskey_8   =   Chaskey( rounds=8,  alg_id='CHASKEY_8' )

chaskey_12  =   Chaskey( rounds=12, alg_id='CHASKEY_12' )

chaskey_all =   [   chaskey_8, chaskey_12   ]


def new(key, msg=None, rounds=CHASKEY_ROUNDS):
    """ Context for key with the parameter set of the given round count. """
    for cs in chaskey_all:
        if cs.rounds == rounds:
            return cs.new(key, msg)
    raise ValueError('Chaskey round count must be 8 or 12')


#   test vector printer

def print_vectors(iut, count=64):
    """Print reference-style vectors: REF_KEY, messages 00 01 02 .."""
    print(f"# {iut.algname}\n")
    print("key =", le_bytes(REF_KEY).hex().upper())
    k1, k2 = iut.subkeys(REF_KEY)
    print("k1 =", le_bytes(k1).hex().upper())
    print("k2 =", le_bytes(k2).hex().upper())
    print()
    for mlen in range(count):
        msg = bytes(range(mlen))
        print("mlen =", mlen)
        print("tag =", iut.mac(REF_KEY, msg).hex().upper())
        print()

if __name__ == '__main__':
    for iut in chaskey_all:
        print_vectors(iut)
