# resume-insight

A small HTTP service for screening résumés. Upload résumé files, trigger an
analysis against a job description, and read back a structured evaluation:
basic candidate information, a match score, a summary, skill and experience
assessments, strengths, concerns and suggested interview topics.

Uploaded files are stored under their SHA-256 hash, so the same file uploaded
twice is recognised and reused. Analysis is done by a multimodal,
OpenAI-compatible chat completions endpoint (`{LLM_BASE_URL}/chat/completions`)
that receives a link to the stored file and answers with an `<analysis>` XML
document, which the service parses and saves in a SQLite database.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

Settings come from the environment; a `.env` file found from the working
directory is read on start-up.

| Variable          | Required | Default                             | Meaning                                              |
|-------------------|----------|-------------------------------------|------------------------------------------------------|
| `LLM_BASE_URL`    | yes      |                                     | Base URL of the chat completions API                 |
| `LLM_MODEL`       | yes      |                                     | Model name sent with each request                    |
| `LLM_API_KEY`     | yes      |                                     | Bearer token for the API                             |
| `SERVER_BASE_URL` | yes      |                                     | Public URL of this service, e.g. `http://localhost:3000` |
| `FILES_DIR`       | no       | `./data/files`                      | Where uploaded files are stored                      |
| `LOGS_DIR`        | no       | `./logs`                            | Where LLM request, response and error logs are written |
| `DATABASE_URL`    | no       | `sqlite://data/resume.db?mode=rwc`  | SQLite database location                             |

Example `.env`:

```
LLM_BASE_URL=https://llm.example.com/v1
LLM_MODEL=vision-model
LLM_API_KEY=placeholder
SERVER_BASE_URL=http://localhost:3000
```

`SERVER_BASE_URL` must be reachable by the LLM provider, since the model
fetches the résumé through the `/files/` route of this service.

`DATABASE_URL` takes the form `sqlite://<path>?mode=<mode>` or
`sqlite://:memory:`. With `mode=rwc` a missing database file is created;
without a `mode` the file must already exist.

### Job descriptions

Job descriptions are Markdown files in `prompts/jobs/` relative to the working
directory. The file name without `.md` is the job key, and the first `# `
heading is used as the job title (`未知岗位` when there is none). A file named
`default.md` is used whenever no job key is given or the requested one does
not exist. The service refuses to start if the directory is missing or holds
no `.md` files.

```
prompts/jobs/default.md
prompts/jobs/rust-backend-engineer.md
```

## Running

```
resume-insight
resume-insight --host 127.0.0.1 --port 8080
```

By default the server listens on `0.0.0.0:3000`. On start it creates the
files and logs directories and creates the `resumes` table if it does not
exist. Request bodies may be up to 500 MB, and every response carries
permissive CORS headers. The command exits with status 1 if configuration,
job descriptions or the database cannot be loaded.

## API

| Method   | Path                              | Purpose                                   |
|----------|-----------------------------------|-------------------------------------------|
| `GET`    | `/health`                         | Returns `OK`                              |
| `POST`   | `/api/v1/resumes/upload`          | Upload files (multipart field `file`, repeatable) |
| `POST`   | `/api/v1/resumes/analyze`         | Start analysis for a batch of résumés     |
| `GET`    | `/api/v1/resumes`                 | List résumés with filters and paging      |
| `GET`    | `/api/v1/resumes/{id}`            | Résumé details including the analysis     |
| `GET`    | `/api/v1/resumes/{id}/status`     | Current status                            |
| `DELETE` | `/api/v1/resumes/{id}`            | Delete a résumé record                    |
| `GET`    | `/files/{name}`                   | Stored files                              |

### Upload

```
curl -F file=@cv.pdf http://localhost:3000/api/v1/resumes/upload
```

```json
{"uploaded": [{"id": "…", "filename": "cv.pdf", "status": "pending"}]}
```

Fields other than `file` are ignored. A file already known by its hash is
returned with its existing id, file name and status. A file without an
extension is stored with `.pdf`.

### Analyze

```
curl -X POST http://localhost:3000/api/v1/resumes/analyze \
     -H 'Content-Type: application/json' \
     -d '{"resume_ids": ["…"], "job": "rust-backend-engineer"}'
```

```json
{"message": "开始分析", "count": 1}
```

The listed résumés are marked `analyzing` and processed in background tasks.
Each ends as `completed` (with the analysis, candidate name and score stored)
or `failed` (with an error message).

### List

Query parameters: `status`, `job_key`, `search` (matches candidate name or
file name), `page` (default 1) and `page_size` (default 20); `page` and
`page_size` must be positive integers. Newest uploads come first.

```json
{"total": 1, "items": [{"id": "…", "filename": "cv.pdf", "status": "completed",
  "job_key": null, "score": 85, "name": "…",
  "uploaded_at": "2024-01-29 10:00:00", "analyzed_at": "2024-01-29 10:01:30"}]}
```

Timestamps are UTC.

### Status

```json
{"status": "analyzing", "progress": 50}
```

`progress` is 50 while a résumé is being analysed and `null` otherwise.

### Errors

Errors are returned as `{"error": "<message>"}`: 400 for bad input or an
unknown résumé, 502 when the LLM call or its output fails, and 500 with a
generic message for internal faults.

## Logs

Every LLM call writes timestamped files into `LOGS_DIR`:
`llm_request_*.log` with the prompts and the JSON payload,
`llm_response_*.log` with the raw answer, and `error_*.log` for API or
parsing failures.

## Using the pieces directly

The modules can be used without the server:

- `resume_insight.config.Config.from_env()` reads the settings above.
- `resume_insight.prompts.PromptManager.load()` reads job descriptions and
  `build_analysis_prompt_for_vision(job_key)` builds the user prompt.
- `resume_insight.analyzer.parse_analysis(content)` turns a model reply
  (optionally wrapped in a code fence) into an `Analysis`;
  `Analyzer.analyze_file(...)` runs the whole request.
- `resume_insight.database.connect(url)` and `migrate(conn)` open and prepare
  the database; `resume_insight.repository.ResumeRepository` reads and writes
  résumé records.
- `resume_insight.app.create_app(state, files_dir)` builds the aiohttp
  application.

## Limitations

- There is no authentication; anyone who can reach the server can upload,
  list and delete.
- Deleting a résumé removes its database record only; the stored file stays
  in `FILES_DIR`.
- Analysis runs in tasks inside the server process; tasks still running when
  the server stops are cancelled and those résumés stay `analyzing`.