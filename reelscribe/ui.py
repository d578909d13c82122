INDEX_HTML = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Reel Transcriber</title>
  <style>
    body { font-family: system-ui, sans-serif; max-width: 720px; margin: 2rem auto; padding: 0 1rem; }
    input { width: 100%; padding: .5rem; box-sizing: border-box; }
    button { margin-top: .75rem; padding: .5rem 1.25rem; }
    pre { white-space: pre-wrap; background: #f4f4f4; padding: 1rem; }
    .error { color: #b00020; }
  </style>
</head>
<body>
  <h1>Reel Transcriber</h1>
  <form id="form">
    <label for="url">Instagram Reel URL</label>
    <input id="url" name="url" type="url" placeholder="https://www.instagram.com/reel/..." required>
    <button type="submit">Transcribe</button>
  </form>
  <p id="status"></p>
  <div id="result" hidden>
    <h2>Language: <span id="lang"></span></h2>
    <h3>Original transcript</h3>
    <pre id="original"></pre>
    <h3>English translation</h3>
    <pre id="english"></pre>
  </div>
  <script>
    const form = document.getElementById("form");
    const status = document.getElementById("status");
    const result = document.getElementById("result");
    form.addEventListener("submit", async (event) => {
      event.preventDefault();
      result.hidden = true;
      status.className = "";
      status.textContent = "Processing, this can take a minute...";
      try {
        const res = await fetch("/transcribe", {
          method: "POST",
          headers: {"Content-Type": "application/json"},
          body: JSON.stringify({url: document.getElementById("url").value}),
        });
        const data = await res.json();
        if (!res.ok) {
          status.className = "error";
          status.textContent = data.error || "Request failed.";
          return;
        }
        status.textContent = "";
        document.getElementById("lang").textContent = data.language_detected;
        document.getElementById("original").textContent = data.original_transcript;
        document.getElementById("english").textContent = data.english_translation;
        result.hidden = false;
      } catch (err) {
        status.className = "error";
        status.textContent = "Network error: " + err;
      }
    });
  </script>
</body>
</html>
"""


def render_index() -> str:
    return INDEX_HTML
