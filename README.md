# ctrkit

`ctrkit` is a library of building blocks for a command-line client that manages
containers through containerd. It covers the parts of such a client that do not
talk to the daemon:

- reading command-line flags
- building OCI runtime spec settings
- formatting output
- detecting rootless mode
- helpers for the OCI hook that sets up container networking

It needs nothing beyond the Python standard library.

## Modules

| Module | Purpose |
| --- | --- |
| `ctrkit.strutil` | Turns `key=value` lists into dicts, removes duplicates, parses CSV maps, trims a suffix off a list |
| `ctrkit.reflectutil` | `unknown_non_empty_fields` lists the set fields of an object that the caller did not name |
| `ctrkit.portutil` | `parse_flag_p` turns a `-p` flag such as `127.0.0.1:8080-8081:80-81/udp` into `PortMapping` objects; `parse_port_range` |
| `ctrkit.rootlessutil` | Rootless detection, the RootlessKit state directory and child PID, `parent_main` to re-exec under `nsenter`, XDG directories |
| `ctrkit.portmanager` | `RootlessCNIPortManager` exposes and unexposes published ports through a port driver client you supply |
| `ctrkit.display` | Text for `ps`, `port` and `version`: `ellipsis`, `human_duration`, `format_ports`, `status_text`, `parse_port_argument`, `port_lines`, `version_text` |
| `ctrkit.specopts` | Changes to an OCI spec dict: custom mounts, resolv.conf, hosts, hooks, annotations, sysctls, user; `runtime_options` |
| `ctrkit.runconfig` | Checks and defaults for `run`: restart policy, state directory, process args, internal labels, hostname, completion values |
| `ctrkit.cgroup` | `cgroup_settings` and `parse_ram_in_bytes` for the cgroup path and the CPU, memory, pids and cgroup namespace settings |
| `ctrkit.security` | `security_settings` for seccomp, AppArmor and no-new-privileges; `capability_changes` for `--cap-add`/`--cap-drop` |
| `ctrkit.mounts` | Checks the `VOLUME` entries of an image and creates anonymous volumes for them |
| `ctrkit.stopping` | `parse_stop_timeout`, and `stop_container`: SIGTERM, a wait with a timeout, then SIGKILL |
| `ctrkit.ocihook` | Helpers for the OCI hook: spec root path, network namespace path, network list, rootless host IP rewriting |

## Examples

Parsing a publish flag:

```python
from ctrkit.portutil import parse_flag_p

for mapping in parse_flag_p("127.0.0.1:8080-8081:80-81/udp"):
    print(mapping.to_json())
```

A flag with no host port, such as `"80"`, raises `ValueError`: automatic
host port assignment is not supported.

String helpers:

```python
from ctrkit.strutil import dedupe_str_slice, parse_csv_map, trim_str_slice_right

dedupe_str_slice(["apple", "banana", "apple", "chocolate"])
# ['apple', 'banana', 'chocolate']

parse_csv_map('"foo=x,bar=y",baz=z,qux')
# {'foo': 'x,bar=y', 'baz': 'z', 'qux': ''}

trim_str_slice_right(["foo", "bar", "baz", "qux", "quux"], ["qux", "quux"])
# ['foo', 'bar', 'baz']
```

Formatting for `ps`:

```python
from ctrkit.display import ellipsis, format_ports

ellipsis("a very long command line", 20)
# 'a very long command…'
format_ports('[{"HostPort":8080,"ContainerPort":80,"Protocol":"tcp","HostIP":"0.0.0.0"}]')
# '0.0.0.0:8080->80/tcp'
```

Security options:

```python
from ctrkit.security import security_settings, capability_changes

settings = security_settings({"seccomp": "unconfined"}, apparmor_supported=False)
changes = capability_changes(["ipc_lock"], [])
# changes.add == ['CAP_IPC_LOCK']
```

## Errors

Bad input raises an exception; nothing returns a status value. For example, a
malformed port flag, an unknown restart policy or cgroup namespace mode, an
empty `seccomp=` option or a forbidden image volume each raise `ValueError`.

## What it does not do

`ctrkit` is a library only. It has no command-line program, does not connect to
containerd, and does not create, start or remove containers or images itself.
It does not configure container networks: the OCI hook helpers compute paths,
identifiers and port mappings, but calling the network plugins is left to the
caller. Port forwarding in rootless mode goes through a client object that the
caller provides.