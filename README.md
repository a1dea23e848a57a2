# ollama-api-proxy

A small Flask-based HTTP server that answers a few Ollama API endpoints and
forwards chat completions to an OpenAI-compatible backend. Clients that list
models the Ollama way can see the backend's models, and OpenAI-style chat
completion requests are passed through to the backend.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running

```
ollama-api-proxy
```

Options:

- `--env-file PATH`: the dotenv file to load before reading the configuration
  (default `.env`). A missing file is ignored, and variables already set in the
  environment are not overridden by it.

The same entry point can be started with `python -m ollama_api_proxy.cli`.

The server listens on `0.0.0.0:11434` by default, Ollama's usual port, using
Flask's built-in threaded server. The command exits with status 1 if the
configuration is invalid or the server cannot start.

Log lines go to standard output at the configured level.

## Endpoints

| Method | Path                   | Behaviour |
|--------|------------------------|-----------|
| GET    | `/api/version`         | Returns `{"version": "0.6.8"}`. |
| GET    | `/api/tags`            | Fetches `<base URL>/models` from the backend and returns the models in Ollama's listing shape: `name` and `model` are the backend model id, `modified_at` is the model's `created` time, `size` is 0 and `digest` is empty. Any backend failure gives `500` with `{"error": "..."}`. |
| POST   | `/v1/chat/completions` | Validates the JSON body as a chat completion request, re-encodes it and posts it to `<base URL>/chat/completions` with the configured API key as a bearer token. |
| any    | anything else          | `501` with `{"error": "Not Implemented"}`, also for a known path with the wrong method. |

Chat completions:

- An empty body gives `400` with an OpenAI-style error body
  (`{"error": {"message": ..., "type": "invalid_request_error", ...}}`);
  so does a body that is not JSON or has a field of the wrong type.
- With `"stream": true` the backend's response is relayed as
  `text/event-stream`, byte for byte, with status 200.
- Otherwise, a backend status other than 200 is returned with the same status
  code and the message `OpenAI API error`; a 200 response body is returned
  unchanged as `application/json`.
- A request that cannot reach the backend gives `500`.

## Configuration

Settings come from environment variables that start with `PROXY_`. A value
containing a comma is read as a list, with each item stripped of whitespace.

| Variable                | Default                     | Allowed values |
|-------------------------|-----------------------------|----------------|
| `PROXY_PORT`            | `11434`                     | 1–65535 |
| `PROXY_HOST`            | `0.0.0.0`                   | a hostname or IP address |
| `PROXY_GIN_MODE`        | `debug`                     | `debug`, `release`, `test` (validated only; it does not change how the server runs) |
| `PROXY_OPENAI_BASE_URL` | `https://api.openai.com/v1` | a URL |
| `PROXY_OPENAI_API_KEY`  | *(empty)*                   | the backend's API key |
| `PROXY_LOG_LEVEL`       | `info`                      | `debug`, `info`, `warn`, `error` |
| `PROXY_TRUST_DOMAINS`   | `localhost,127.0.0.1,::1`   | comma-separated hostnames or IP addresses |
| `PROXY_TIMEOUT`         | `5m`                        | a non-negative duration such as `30s`, `2m`, `1h30m`; `0` means no timeout |

If any value is invalid, `load_config` raises `ConfigError` with a message that
lists every offending setting.

`PROXY_TRUST_DOMAINS` decides whose `X-Forwarded-For` / `X-Real-IP` headers are
believed when determining the client address. Only IP addresses and networks
can be matched: if any entry is not one (a hostname such as `localhost`,
including in the default list), a warning is logged and no proxy is trusted.

An example `.env`:

```
PROXY_OPENAI_BASE_URL=https://api.example.com/v1
PROXY_OPENAI_API_KEY=placeholder
PROXY_PORT=8080
PROXY_TIMEOUT=30s
```

## Using it as a library

```python
from ollama_api_proxy.config import load_config
from ollama_api_proxy.app import create_app, run

config = load_config({"PROXY_OPENAI_API_KEY": "placeholder"})
app = create_app(config)          # a Flask app; a requests.Session may be passed too
run(app, config)
```

`load_config(environ)` reads from the given mapping, or from `os.environ` when
called without one. `create_app(config, session)` accepts a
`requests.Session` to use for backend calls.

Other modules:

- `ollama_api_proxy.durations`: `parse_duration` and `format_duration` for
  durations such as `"1h2m3.5s"`, held as integer nanoseconds.
- `ollama_api_proxy.model_name`: `parse_name`, `parse_name_bare`,
  `parse_name_from_filepath`, `merge`, `default_name`, `is_valid_namespace`
  and the `Name` class (`display_shortest`, `is_fully_qualified`, `filepath`,
  `equal_fold`) for names like `host/namespace/model:tag`.
- `ollama_api_proxy.ollama`: dataclasses for Ollama-style requests and
  responses (`ChatRequest`, `Message`, `Tool`, `Options`, `Metrics`,
  `ListResponse`, …) with their JSON forms, plus `default_options()`.
- `ollama_api_proxy.openai`: dataclasses for OpenAI-style chat completion
  requests and model listings, and `new_error(code, message)`.
- `ollama_api_proxy.capability`: the `Capability` enum.

## What it does not do

Only the three endpoints above are served. The Ollama endpoints for generation
and chat (`/api/generate`, `/api/chat`), embeddings, and model management
(pull, push, show, delete) are not implemented and answer `501`; the
`ollama.ChatRequest` type exists for reading such requests, but no route uses
it. Chat completions are forwarded in OpenAI format, not translated into
Ollama's.