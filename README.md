# zimbuild

zimbuild is a library for organising a repository into *components*. Each
component owns named *rules*, such as `build` or `test`. A rule declares its
inputs, outputs, the rules it depends on, conditions, and the commands it
runs. zimbuild resolves the dependencies between rules into a graph and runs
the rules in dependency order, several at once if you ask for it. It also
offers two stores for build artifacts: one on the local filesystem and one
reached over HTTP.

## Installation

```
pip install zimbuild
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "zimbuild[test]"
pytest
```

## Concepts

- **Project** (`zimbuild.project.Project`): the root directory of a repository and its
  components. When it is created, it makes an `artifacts` directory under the root.
  It then builds the components from `ComponentSpec` objects and resolves the
  dependencies between rules. Unknown dependencies raise `ValueError`.
- **Component** (`zimbuild.component.Component`): a directory, named by the location
  of its definition file. It holds rules (`rule`, `must_rule`, `rules`, `select`) and
  exports (`export`, `exports`). `zimbuild.components.Components` is a list of
  components with filters such as `with_name`, `with_kind`, `with_rule` and `rules`.
- **Rule** (`zimbuild.rule.Rule`, defined by a `RuleSpec`):
  - **Inputs**: file names or glob patterns, relative to the component directory.
    Patterns may use `*`, `?`, `[...]`, `**` for any number of directories, and
    `{a,b}` for alternatives. A pattern without `*` names a single file.
  - **Ignore**: patterns whose matches are removed from the inputs.
  - **Outputs**: written to the project's `artifacts` directory, or to the component
    directory when the rule is `local`.
  - **Dependencies** (`Dependency`): on rules of the same component or of another
    component, or on another component's exports. Set `recurse=1` to also depend on
    the rules your dependency requires.
  - **Conditions**: `when` and `unless` (`zimbuild.condition.Condition`). Each checks
    one of these: that a resource exists, that a directory exists, or that a script
    succeeds. A script check may also require the script's output to match a given
    value.
  - **Commands**: `run`, `zip`, `unzip`, `archive`, `unarchive`, `mkdir`, `cleandir`,
    `remove`, `move` and `copy`. In `RuleSpec.commands`, write each command as a
    string (a `run` command), or as a one-entry mapping such as `{"run": "make"}` or
    `{"zip": {"output": "out.zip"}}`. If the list is empty, the rule runs its single
    `command` string.
- **Export** (`zimbuild.export.Export`): resources that a component publishes.
  Rules in other components can use them as inputs. An export is resolved only once.
- **Variables**:
  - `${NAME}`-style references are substituted in input, ignore and output patterns,
    using `COMPONENT`, `NAME`, `KIND`, `RULE`, `NODE_ID` and the component's own
    environment.
  - When a rule runs, its environment also holds `INPUT`, `OUTPUT`, `OUTPUTS`, `DEP`,
    `DEPS`, `ROOT`, `ARTIFACTS_DIR` and, where the rule has a file output, `ARTIFACT`.
  - Condition patterns and expected script output are substituted with that full
    environment.

## Running rules

The scheduler runs the rules you select and every rule they depend on:

```python
from zimbuild.component import ComponentSpec
from zimbuild.execution import RunnerFunc
from zimbuild.project import Project
from zimbuild.rule import Dependency, RuleSpec
from zimbuild.scheduler import GraphScheduler, Options
from zimbuild.status import Code

specs = [
    ComponentSpec(
        path="repo/widget/component.yaml",
        name="widget",
        rules={
            "test": RuleSpec(),
            "build": RuleSpec(requires=[Dependency(rule="test")]),
        },
    )
]
project = Project("repo", component_specs=specs)

order = []

def record(rule, opts):
    order.append(rule.node_id())
    return Code.OK

GraphScheduler().run(
    Options(runner=RunnerFunc(record), rules=project.components().rules(["build"]))
)
# order == ["widget.test", "widget.build"]
```

How the scheduler behaves:

- A rule starts only after every one of its dependencies has succeeded.
- When several rules are ready at once, they start in order of node ID.
- `num_workers` sets how many rules may run at the same time.
- If a rule fails, every rule that depends on it fails too.
- Once nothing more can run, all failures are raised together as a single
  `RuntimeError`.

### The standard runner

`zimbuild.runner.StandardRunner` works through a rule in this order:

1. It builds the rule's environment.
2. It checks the rule's conditions and returns `Code.SKIPPED` when they are not met.
3. It turns each command into a shell script, for example `zip -qrFS out.zip .`.
4. It hands each script to an `Executor`.
5. It checks that every declared output was created.

Failures are raised as `RunError`. Its `code` is one of `Code.ERROR`,
`Code.EXEC_ERROR` or `Code.MISSING_OUTPUT_ERROR`.

Executors:

- `run` commands use the executor given in `RunOpts.executor`.
- Conditions and the other built-in commands run natively. They use that same
  executor when it does not use Docker; otherwise they use
  `StandardRunner(native_executor=...)`.

### Middleware

Runners can be wrapped in middleware with `zimbuild.chain.Chain`:

```python
from zimbuild.chain import Chain
from zimbuild.middleware import buffered_output, debug, logger
from zimbuild.runner import StandardRunner

runner = Chain(logger, debug).then(StandardRunner(native_executor=my_executor))
```

`Chain(m1, m2).then(r)` is the same as `m1(m2(r))`. If you call `then()` with no
runner, it wraps a `StandardRunner`.

- `logger` prints each rule's node ID. When the rule finishes, it prints how long the
  rule took and its outcome: `[OK]`, `[FAILED]`, `[KILLED]`, `[SKIPPED]` or `[CACHED]`.
- `buffered_output` collects a rule's output and prints it once the rule is done.
- `debug` sets the debug flag for the runners it wraps.

## Artifact stores

Both stores implement `zimbuild.store.Store`, with `get`, `put` and `head`.

- `zimbuild.filestore.FileStore` keeps items in a nested directory tree. The key
  `abcdef` is stored at `ab/cd/abcdef`. Its metadata is stored beside it, as JSON in
  `abcdef.meta`. `get` and `head` raise `NotFound` for a missing key.
- `zimbuild.httpstore.HttpStore` sends JSON requests to a signing service:
  - Requests are POSTed to `<signing_url>/sign` and `<signing_url>/head`, with a
    bearer token.
  - Failed requests, including server errors, are retried up to four times with
    exponential backoff.
  - Once it has a pre-signed URL, it downloads or uploads through that URL. Metadata
    is sent as `x-amz-meta-*` headers.
  - `head` raises `NotFound` when the service reports no ETag.
  - An empty token raises `RuntimeError`.

`zimbuild.store` also defines `SignInput`, `SignOutput` and `Item`, the messages
exchanged with the signing service.

## What zimbuild does not do

- It does not look for component definition files on disk, and it does not read
  YAML. You build `ComponentSpec` and `RuleSpec` objects yourself.
- It includes no executor that runs shell commands, either locally or in Docker.
  You provide an `Executor` subclass that implements `execute`, `uses_docker` and
  `executor_path`. `Project.toolchain` also needs one.
- It has no command-line tool.
- It does not include the signing service that `HttpStore` talks to.
- The stores are not connected to rule execution. Nothing caches rule outputs
  automatically.