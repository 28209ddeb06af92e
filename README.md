# miniblog

Building blocks for a small blog API server: the pieces that sit around the
business logic of a blog service.

## Modules

- **`miniblog.contextx`** – `Context`, an immutable bag of request-scoped
  values (`value`, `with_value`), with helpers to store and read the user ID,
  username, access token, request ID and incoming metadata
  (`with_user_id`/`user_id`, `with_username`/`username`,
  `with_access_token`/`access_token`, `with_request_id`/`request_id`,
  `with_metadata`/`metadata`). Readers return an empty string when nothing is
  stored. Also holds the header names `X_REQUEST_ID`, `X_USER_ID`,
  `X_USERNAME` and the role names `ROLE_USER` and `ROLE_ADMIN`.
- **`miniblog.errno`** – `ErrorX`, an exception with an HTTP `code`, a
  `reason`, a `message` and `metadata`; `with_message` and `with_request_id`
  return modified copies. `from_error` turns any exception into an `ErrorX`
  (unknown errors become code 500). `ERR_POST_NOT_FOUND` is predefined.
- **`miniblog.log`** – a structured key-value logger. `Options` sets the
  level (`debug`, `info`, `warn`, `error`, `dpanic`, `panic`, `fatal`; an
  unknown level falls back to `info`), the format (`console` or `json`; any
  other raises `ValueError`), the output paths (`stdout`, `stderr` or file
  paths) and whether caller and stack information are left out. `new` builds a
  `Logger`, `init` replaces the global one. `debugw`, `infow`, `warnw` and
  `errorw` log; `panicw` logs and raises `LogPanic`; `fatalw` logs, flushes and
  raises `SystemExit(1)`; `sync` flushes; `w(ctx)` returns a logger that also
  records the request ID and user ID found in a context. Records of the
  standard `logging` module are passed to the most recently built logger.
- **`miniblog.version`** – `get()` returns an `Info` describing the build and
  the Python runtime; `str(info)` is the version, `to_json()` compact JSON and
  `text()` an aligned two-column table. `add_flags` registers a `--version`
  option (`true`, `false` or `raw`; bare `--version` means `true`) on an
  `argparse` parser, and `print_and_exit_if_requested` prints and exits when
  the parsed `VersionValue` asks for it.
- **`miniblog.auth`** – `encrypt` hashes a password with bcrypt (cost 10;
  passwords over 72 bytes raise `ValueError`); `compare` raises
  `PasswordMismatchError` when a hash does not match. `Authz` is a thread-safe
  authorizer: requests are allowed unless a `deny` policy matches, where a
  policy matches when the subject is the policy's subject or inherits it
  through `add_grouping_policy`, the object matches the policy pattern by
  `key_match` (`*` matches any tail) and the actions are equal.
- **`miniblog.token`** – JWT access tokens. `init` configures the signing
  key, the claim name holding the identity and the lifetime (only the first
  call counts). `sign` issues an HS256 token and returns it with its expiry
  time; `parse` verifies a token and returns its identity; `parse_request`
  does the same for the `Bearer` token in a mapping of HTTP headers or in the
  `authorization` metadata of a `Context`.
- **`miniblog.rid`** – `ResourceID.USER` and `ResourceID.POST`; `new(counter)`
  returns an identifier such as `user-` followed by six characters, built by
  `new_code` with a salt derived from the machine ID (`salt`,
  `read_machine_id`).
- **`miniblog.httpmw`** – `HTTPContext` holds one request's method, path,
  headers, TLS flag, context and response; `run_chain` runs middlewares
  around a handler until one aborts. Middlewares: `no_cache`, `cors`
  (answers `OPTIONS` pre-flight requests with 200), `secure`,
  `request_id_middleware()` and `authn_bypass_middleware()`, which takes the
  user ID from `x-user-id` or uses `user-000001`. `protocol_name` returns
  `http` or `https`.
- **`miniblog.grpcmw`** – unary RPC interceptors over `Context` requests:
  `chain_interceptors` wraps a handler, the first interceptor outermost;
  `authn_bypass_interceptor()`, `defaulter_interceptor()` (calls the request's
  `default()`), `request_id_interceptor()` (reads or generates the request ID
  and attaches it to any raised error as an `ErrorX`) and
  `validator_interceptor(validator)`. `UnaryServerInfo` describes the call.
- **`miniblog.apimodels`** – `CreateUserRequest`, `CreatePostRequest` and
  `HealthzResponse`; `default()` fills in unset fields (a missing user
  nickname becomes `你好世界`).

## Examples

Hashing and checking a password:

```python
from miniblog import auth

password = "password"
hashed = auth.encrypt(password)
auth.compare(hashed, password)  # raises PasswordMismatchError on a mismatch
```

Denying access by policy:

```python
from miniblog.auth import Authz

authz = Authz()
authz.add_grouping_policy("user-000001", "role::user")
authz.add_policy("role::user", "/v1/users/*", "DELETE", "deny")
authz.authorize("user-000001", "/v1/users/user-000002", "DELETE")  # False
authz.authorize("user-000001", "/v1/posts", "GET")  # True
```

Carrying request data through a context and logging with it:

```python
from miniblog import contextx, log

ctx = contextx.with_request_id(contextx.Context(), "req-1")
ctx = contextx.with_user_id(ctx, "user-000001")
log.w(ctx).infow("post created", "postID", "post-abc123")
```

Signing and reading a token:

```python
from datetime import timedelta
from miniblog import token

token.init("secret", "identityKey", timedelta(hours=2))
signed, expires_at = token.sign("user-000001")
token.parse(signed, "secret")  # "user-000001"
```

Generating a resource identifier:

```python
from miniblog.rid import ResourceID

ResourceID.USER.new(1)  # "user-" followed by six characters
```

## What the package does not do

It provides no server, no command-line program and no storage. There are no
HTTP or RPC listeners, no request routing and no blog handlers for users or
posts; the middlewares and interceptors run only through `run_chain` and
`chain_interceptors`. `Authz` keeps its policies in memory only.

## Running the tests

The test suite uses pytest, available through the `test` extra:

```
pip install -e .[test]
pytest
```