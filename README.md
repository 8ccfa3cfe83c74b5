# ordtool

`ordtool` gives every satoshi a serial number, its *ordinal*, in the order in
which it was mined. It then follows those ordinals through transactions,
first in, first out. Ordinals can be inspected offline. With a Bitcoin Core
node reachable over JSON-RPC, `ordtool` also builds an index that locates
ordinals in the set of unspent outputs.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

All commands go through the `ordtool` script:

```
ordtool [--index-size SIZE] [--cookie-file PATH] [--rpc-url URL] <command> ...
```

Global options:

- `--index-size` is the maximum size of the on-disk index. It takes a plain
  byte count or a number with a unit, such as `1MiB` (the default), `2mib` or
  `1.5GiB`. The units are `b`, `byte`, `bytes`, `kib`, `mib`, `gib`, `tib`,
  `pib` and `eib`, in any letter case.
- `--rpc-url` is the URL of the node's JSON-RPC endpoint. The commands that
  read the blockchain require it.
- `--cookie-file` is the path of the node's RPC cookie file. Its first line
  is sent as HTTP basic authentication.

The index lives in the directory `index.lmdb` under the current directory.

Errors are printed as `error: ...`, followed by a `because: ...` line for each
underlying cause, and the exit status is 1. Set the environment variable
`ORDTOOL_LOG` to a logging level such as `info` or `debug` to see progress
messages.

### Commands that work offline

```
ordtool epochs                 # first ordinal of each halving epoch, then the supply
ordtool supply                 # total supply, first and last ordinal, last block with a subsidy
ordtool range 0                # ordinals mined in block 0: [0,5000000000)
ordtool range --name 0         # the same range as names: [nvtdijuwxlp,nvtcsezkbth)
ordtool name nvtdijuwxlp       # the ordinal with that name: 0
ordtool traits 69              # notable properties of an ordinal
ordtool generate-private-key   # a new compressed mainnet private key in WIF
```

`name` accepts only lower-case letters `a` to `z`. It fails with
`Name out of range` for a name that no ordinal carries.

`traits` prints one trait per line: `even` or `odd`, then, where they apply,
`square`, `cube`, `pi` (the digits begin like those of pi), `nice` (the digits
repeat `69`) and `angelic` (all digits are 7). After those come `luck: X/Y`
(eights minus fours, over the number of digits), `population: N` (set bits),
`name: ...`, `character: '...'`, `epoch: N` and `height: N`. Last come
`shiny` for the first ordinal of a block, and `cursed` or `illusive` for
ordinals of block 124724. Ordinals at or beyond the supply are rejected with
`Invalid ordinal`.

### Commands that use the index

These connect to the node, bring the index up to the node's current tip and
then answer:

```
ordtool --rpc-url http://localhost:8332 index
ordtool --rpc-url http://localhost:8332 find 0
ordtool --rpc-url http://localhost:8332 list <txid>:<vout>
```

- `index` only updates the index.
- `find ORDINAL` prints where the ordinal is now, as `txid:vout:offset`. It
  fails with `Ordinal has not been mined as of index height` if the index has
  not yet reached the block that mined it.
- `list OUTPOINT` prints the ordinal ranges held by an unspent output, one
  `[start,end)` per line, in order. It fails with `Output not found` for
  outputs that are spent or unknown.

`info` opens the index without updating it and prints two lines:
`blocks indexed: N` and `data and metadata: N`, the bytes in use.

```
ordtool --rpc-url http://localhost:8332 info
```

Indexing commits every 1000 blocks and at the end. Ctrl-C stops it cleanly
after the block in progress and keeps what has been indexed, so the next run
continues from there. If a block does not build on the indexed one, indexing
stops with `Reorg detected at or before N`.

### HTTP server

```
ordtool --rpc-url http://localhost:8332 server --address 127.0.0.1 --port 8080
```

The server keeps the index up to date in a background thread and answers:

- `GET /status` returns `200` with an empty body.
- `GET /list/<txid>:<vout>` returns a JSON array of `[start, end]` pairs, for
  example `[[0,5000000000]]`. It returns `404` with `null` if the output is
  not in the index, `400` for a malformed outpoint and `500` with `null` if
  the lookup fails.

Responses allow any origin. `--address` defaults to `0.0.0.0` and `--port`
to `80`. Ctrl-C stops the server.

### Signed NFTs

An NFT binds a file's contents to an ordinal. It is signed with a BIP340
Schnorr signature and stored as CBOR:

```
ordtool mint --ordinal 0 --signing-key <WIF key> --data-path data.txt --output-path foo.nft
ordtool verify --input-path foo.nft
```

`verify` checks the data hash and the signature. It reports `NFT is valid!`,
the ordinal, the issuer's x-only public key and the data hash (both in hex) on
standard error, and writes the NFT's data to standard output.

## Library use

```python
from ordtool.byte_size import ByteSize
from ordtool.commands import height_range, name_to_ordinal, traits
from ordtool.ordinal import Epoch, Height, Ordinal

Ordinal(0).name()              # 'nvtdijuwxlp'
Ordinal(5000000000).height()   # Height(1)
Height(210000).subsidy()       # 2500000000
Epoch(1).starting_height()     # Height(210000)
str(ByteSize.parse("1.5mib"))  # '1.5 MiB'
height_range(1)                # (5000000000, 10000000000)
name_to_ordinal("a")           # 2099999997689999
```

Other modules:

- `ordtool.sat_point`: `OutPoint` and `SatPoint`, with text parsing and
  consensus encoding.
- `ordtool.keys`: `PrivateKey` (WIF encoding, x-only public key, Schnorr
  signing) and `verify_schnorr`.
- `ordtool.nft`: `Nft.mint`, `Nft.encode` and `Nft.verify`.
- `ordtool.chain`: blocks and transactions in consensus encoding, and
  `RpcClient` for `getblockhash` and `getblock`.
- `ordtool.database`: the LMDB tables and the 11-byte packing of ordinal
  ranges.
- `ordtool.index`: `Index`, which follows the node's chain and answers
  `find` and `list`.
- `ordtool.server`: `create_server` and `serve`.

## What it does not do

- It reads blocks only from a node over JSON-RPC; it does not read a node's
  block files from disk.
- It does not follow chain reorganisations. When one is detected, indexing
  stops with an error and the index must be rebuilt.
- It does not print paper wallets or look up addresses' unspent outputs.
- It keeps its index only in LMDB; there is no other storage backend.