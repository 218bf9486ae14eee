# txcli

A Python library for working with a {json:api} localization service. It
needs nothing beyond the standard library.

The package has four parts:

- `txcli.jsonapi`: a general {json:api} client.
- `txcli.txapi`: operations on the localization service's organizations,
  projects, resources, languages, file formats, statistics, uploads and
  downloads.
- `txcli.worker_pool`: a thread pool that shows each task's progress.
- `txcli.throttling`: retrying a call while the server throttles it, and a
  few small helpers.

## Installation

```
pip install .
```

## The {json:api} client

`txcli.jsonapi.core` contains the client itself:

- `Connection(host, token, headers, timeout, request_method)` sends requests
  with `Authorization: Bearer <token>`. Its content type defaults to
  `application/vnd.api+json`. `get(type, id)` and `get_from_path(path)` each
  return a `Resource`. `list(type, query)` and `list_from_path(url)` each
  return a `Collection`. If you set `request_method`, it replaces the HTTP
  transport: it is called with `(method, path, payload, content_type)` and
  must return the response body.
- `Collection` is one page of results. It has `data`, `next` and `previous`.
  `get_next()` and `get_previous()` follow the pagination links. Either one
  raises `ValueError` when there is no such page.
- `Resource` has `type`, `id`, `attributes`, `relationships`, `links` and
  `redirect`. It provides these methods:
  - `save(fields)` sends a PATCH if the resource has an id and a POST if it
    does not. With no fields it sends every attribute and relationship.
    After saving, the resource takes the server's answer.
  - `save_as_multipart(fields)` sends the data as `multipart/form-data`.
  - `fetch(key)` loads a relationship.
  - `reload()` refreshes the resource. A redirect answer is stored in
    `redirect` rather than raised.
  - `delete()` deletes the resource on the server.
  - `add`, `remove` and `reset` change a plural relationship.
  - `set_related(field, resource)` sets a singular relationship.
  - `map_attributes(SomeDataclass)` returns the attributes as an instance of
    that dataclass. Passing `dict` returns a copy of the attributes instead.
    A field can read a differently named attribute through
    `metadata={"json": "..."}`.
  - `unmap_attributes(obj)` merges a dataclass instance or a mapping into
    the attributes.
- `Relationship` has a `kind` (`RelationshipKind.NULL`, `SINGULAR` or
  `PLURAL`), `fetched`, `data_singular`, `data_plural` and `links`.
- `payload_to_resource`, `make_included_map` and `json_equal` are the
  helpers the client uses to read response documents.

`txcli.jsonapi.query.Query(filters, includes, extras).encode()` builds a
query string. The keys come out sorted, and a filter key `a__b` becomes
`filter[a][b]`.

`txcli.jsonapi.errors` defines the exceptions the client raises:

- `JsonApiError` for any status of 400 or above. It carries `status_code`
  and a list of `ErrorItem` in `errors`.
- `ThrottleError` for status 429. It carries `retry_after` in seconds,
  which is 1 if the header is missing or cannot be read.
- `RedirectError` for redirects. It carries `location`.

`txcli.jsonapi.multipart.encode_multipart(fields)` encodes form fields and
returns `(body, content_type)`. String values become plain form fields and
bytes values become file parts.

```python
from txcli.jsonapi.core import Connection
from txcli.jsonapi.query import Query

api = Connection(host="https://api.example.com", token="token")

query = Query(filters={"age__gt": "15"}).encode()   # "filter%5Bage%5D%5Bgt%5D=15"
page = api.list("students", query)
while True:
    for student in page.data:
        print(student.attributes["full_name"])
    if not page.next:
        break
    page = page.get_next()
```

### Testing without a server

`txcli.jsonapi.mocking` serves canned responses from memory and records
each request made against them.

```python
from txcli.jsonapi.mocking import MockData, get_mock_text_response, get_test_connection

data = MockData({
    "/students/1": get_mock_text_response('{"data": {"type": "students", "id": "1"}}'),
})
api = get_test_connection(data)
student = api.get("students", "1")
assert data["/students/1"].count == 1
assert data["/students/1"].requests[0].request.method == "GET"
```

If a path has no response left, the mock raises `LookupError`.

## Localization service operations

The functions in `txcli.txapi` take a `Connection` and return `Resource`
objects. Functions that look something up return `None` when it is not
found.

| Module | What it provides |
| --- | --- |
| `organizations` | `get_organization(api, slug)`, `get_organizations(api)` |
| `projects` | `get_project`, `get_projects`, `get_project_languages`, `get_project_by_id` |
| `resources` | `get_resource`, `get_resources`, `create_resource`, `create_async_resource_merge`, `poll_resource_merge`, `delete_resource`, `get_resource_by_id` |
| `languages` | `get_languages(api)`, `get_language(api, code)` |
| `i18n_formats` | `get_i18n_formats(api, organization)` |
| `resource_language_stats` | `get_resource_stats(api, resource, language)` |
| `uploads` | `upload_source`, `poll_source_upload`, `upload_translation`, `poll_translation_upload`, `UploadError` |
| `downloads` | `create_resource_strings_async_download`, `poll_resource_strings_download`, `create_translations_async_download`, `poll_translation_download`, `DownloadError` |
| `utils` | `get_backoff(pool)` |

Some of these functions behave in ways worth knowing:

- `get_languages` fetches the language list once per process. Later calls
  return the same result, or raise the same error, without asking the
  server again.
- `get_project_by_id` and `get_resource_by_id` return `None` when the server
  answers 404.
- The polling functions wait between checks. The waits follow `get_backoff()`:
  1, 1, 1, 2, 3, 5, 8 and then 13 seconds for every check after that.
- A download is written to the given path. Missing directories are created.

```python
from txcli.jsonapi.core import Connection
from txcli.txapi.organizations import get_organization
from txcli.txapi.projects import ProjectAttributes, get_project
from txcli.txapi.resources import get_resources

api = Connection(host="https://api.example.com", token="token")
organization = get_organization(api, "my-org")
project = get_project(api, organization, "my-project")
print(project.map_attributes(ProjectAttributes).name)
for resource in get_resources(api, project):
    print(resource.id, resource.attributes["name"])
```

## Worker pool

`txcli.worker_pool.Pool(num_workers, num_tasks, force_not_terminal, stream)`
runs tasks on threads. The behaviour of a task is as follows:

- A task is a `Task` subclass that overrides `run(send, abort)`, or a
  `Task(callable)`.
- `send(text)` replaces the task's line of output.
- `abort()` stops the pool from starting further tasks.
- An exception raised by a task is collected in `pool.errors` and aborts
  the pool.

On a terminal, the output is redrawn in place, with a progress bar from
`make_progress_bar` below it. When the output is not a terminal, each
message is printed on its own line.

```python
from txcli.worker_pool import Pool, Task

class Square(Task):
    def __init__(self, n):
        self.n = n

    def run(self, send, abort):
        send(f"{self.n} squared is {self.n * self.n}")

pool = Pool(4, 10)
for n in range(10):
    pool.add(Square(n))
pool.start()
pool.wait()
print("aborted" if pool.is_aborted else "done")
```

## Throttling and helpers

`txcli.throttling` provides three functions:

- `handle_throttling(do, initial_msg, send)` calls `do()` and returns its
  result. While `do()` raises `ThrottleError`, it reports the wait through
  `send`, waits, and tries again. Any other error propagates.
- `is_valid_resolution_policy(policy)` accepts `USE_HEAD` and `USE_BASE`.
- `make_remote_to_local_language_mappings(mapping)` inverts a mapping of
  language codes.

## What this package does not do

This package is a library only. It has no command-line program and no
push or pull commands. It does not read or write a local project
configuration file, and it does not store credentials. You have to
provide the host, the token and the resources to work on yourself.

## Running the tests

```
pip install ".[test]"
pytest
```