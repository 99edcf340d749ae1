# ofitune

`ofitune` picks a collective algorithm and protocol (for example Ring with
LL128, or NVLS Tree with Simple) for a communicator spread across several
nodes. It looks at the message size and the communicator size and chooses
with one of two strategies:

- **Region tuner**: hand-measured polygons in (message bytes, rank count)
  space. Each polygon names the algorithm/protocol pair that wins inside it,
  and the first polygon that holds the point wins.
- **Model tuner**: a Hockney-style cost model (latency times pipelined
  operations, plus size over bandwidth) built from per-platform network
  parameters. It models the all-reduce collective only.

Both strategies know the `p5.48xlarge`, `p5e.48xlarge` and `p5en.48xlarge`
platforms. When the platform is unknown, when the communicator spans two nodes
or fewer, or when no region or model covers the request, the tuner makes no
choice and the caller keeps its own default.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```python
from ofitune.tuner import create_tuner
from ofitune.tuner_common import CollFunc, new_cost_table

tuner = create_tuner(n_ranks=128, n_nodes=16, product_name="p5.48xlarge", force_type=None)
if tuner is not None:
    table = new_cost_table(num_algo=7, num_proto=3)
    choice = tuner.get_coll_info(CollFunc.ALL_REDUCE, 64 * 1024 * 1024,
                                 num_pipe_ops=1, cost_table=table)
    # When choice is an (Algorithm, Protocol) pair, that cell of `table` is now 0.0.
    # When it is None, the table is left as it was.
    tuner.close()
```

`new_cost_table` fills every cell with infinity. A cell holding
`ALGO_PROTO_IGNORE` (`-1.0`, from `ofitune.tuner_common`) marks a pair the
caller will not use, and the region tuner skips it.

`create_tuner` returns `None` when no tuner applies: no `product_name` was
given, the platform is unknown, or the tuner type is `"Internal"`. When
`force_type` is `None` the type is read from `OFI_NCCL_TUNER_TYPE`. The region
tuner is chosen whenever it is supported, unless the type is `"Model"`.
`Tuner` is also a context manager that calls `close()` on exit; after closing,
every request returns `None`.

`Tuner.get_coll_info_v2(coll_type, n_bytes, coll_net_support, nvls_support,
num_pipe_ops)` returns the chosen pair instead of writing a table. With this
call the region tuner skips PAT regions, and both tuners skip NVLS Tree when
`nvls_support` is false.

The module-level functions `init_v1`, `get_coll_info_v1` and `destroy_v1` in
`ofitune.tuner` keep one shared tuner for callers that cannot carry a context
object. `init_v1` replaces any existing shared tuner and raises `TunerError`
when `NCCL_ALGO` or `NCCL_PROTO` is set in the environment.

### Lower-level pieces

- `ofitune.tuner_common`: the `Algorithm`, `Protocol`, `CollFunc`,
  `TunerPlatform` and `TunerType` enums, `TunerError`,
  `platform_from_product_name` and `new_cost_table`.
- `ofitune.geometry`: `Point`, `Region`, `intersect`, `distance`,
  `is_inside_region` (1 inside, 0 on an edge, -1 outside) and `extend_region`.
- `ofitune.region_tables_p5`, `ofitune.region_tables_p5en`: the region maps,
  keyed by `CollFunc`.
- `ofitune.regions`: `is_region_supported`, `build_regions`,
  `create_region_context` and `RegionContext`.
- `ofitune.model`: `compute_cost` (returns -1 where there is no model),
  `is_model_supported`, `create_model_context` and `ModelContext`.
- `ofitune.params`: `get_param(name)` returns a `Param` whose `value()` reads
  its `OFI_NCCL_*` environment variable on first use and caches it; `reset()`
  forgets the cached value. `parse_integer` accepts decimal, octal and hex;
  an invalid value falls back to the default.
- `ofitune.mr_key`: `MrCacheKey`, `make_iovec_key` (rounded out to the
  alignment, 4096 by default), `make_dmabuf_key` and `round_to_alignment`.
- `ofitune.mathutil`: `div_ceil`, `is_power_of_two`, `is_aligned`,
  `round_down` and `round_up`.

Messages are written with the standard `logging` module under the
`ofitune.*` logger names; no handlers are installed.

### Environment variables

| Variable | Default | Meaning |
| --- | --- | --- |
| `OFI_NCCL_TUNER_TYPE` | unset | `Internal`, `Region` or `Model` |
| `OFI_NCCL_TUNER_NUM_CHANNELS` | 8 | channel count used by the cost model |
| `OFI_NCCL_TUNER_NET_COMP_OVERHEAD` | 3 | completion overhead in µs added to the Simple protocol |

Other `OFI_NCCL_*` parameters are registered in `ofitune.params.PARAMS` and
can be read with `get_param`, but nothing else in the package acts on them.

## What this package does not do

- It is a library only: it has no command, and it is not loaded into a
  collective library as a plugin. The caller passes in the platform name and
  communicator size and applies the choice itself.
- It does not detect the platform; `product_name` must be supplied.
- It moves no data over the network. `ofitune.mr_key` builds cache keys for
  memory registrations but keeps no cache and registers no memory.