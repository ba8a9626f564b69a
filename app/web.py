"""HTML page rendering for the film catalog."""

from __future__ import annotations

import json
import re
from html import escape
from textwrap import dedent

from .catalog_view import CatalogView
from .config import Settings
from .models import FilmRecord
from .view_state import Empty, Failed, Loading, Populated, RenderState


EMPTY_MESSAGE = "No films found matching your search."
ERROR_MESSAGE = "We couldn't load films right now. Please try again shortly."
PLACEHOLDER_RE = re.compile(r"__[A-Z_]+__")


CATALOG_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__APP_NAME__ · Browse Films</title>
    <style>
        :root {
            color-scheme: dark;
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #141414;
            --surface-muted: #1f1f1f;
            --text-primary: #f5f5f5;
            --text-muted: #a6a6a6;
            --outline: #1c1c1c;
            --star: #eab308;
            --danger: #f87171;
            background: #000000;
            color: var(--text-primary);
        }
        * {
            box-sizing: border-box;
        }
        body {
            margin: 0;
            min-height: 100vh;
            background: #000000;
        }
        a {
            color: inherit;
            text-decoration: none;
        }
        main {
            max-width: 80rem;
            margin: 0 auto;
            padding: 2rem 1rem;
        }
        header h1 {
            font-size: 2.25rem;
            margin: 0 0 0.5rem;
        }
        header p {
            margin: 0 0 2rem;
            color: var(--text-muted);
        }
        .search {
            max-width: 28rem;
            margin-bottom: 2rem;
        }
        .search input {
            width: 100%;
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 10px;
            color: var(--text-primary);
            padding: 0.6rem 0.85rem;
            font-size: 1rem;
        }
        .grid {
            display: grid;
            grid-template-columns: repeat(auto-fill, minmax(14rem, 1fr));
            gap: 1.5rem;
        }
        .card {
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 14px;
            overflow: hidden;
            height: 100%;
        }
        .poster {
            position: relative;
            aspect-ratio: 2 / 3;
            background: var(--surface-muted);
            display: flex;
            align-items: center;
            justify-content: center;
            color: var(--text-muted);
        }
        .poster img {
            width: 100%;
            height: 100%;
            object-fit: cover;
        }
        .poster .details {
            position: absolute;
            inset: auto 0 1rem;
            text-align: center;
            opacity: 0;
            transition: opacity 0.2s ease;
        }
        .card:hover .poster .details {
            opacity: 1;
        }
        .poster .details span {
            background: var(--surface-muted);
            border-radius: 8px;
            padding: 0.35rem 0.75rem;
            font-size: 0.85rem;
        }
        .body {
            padding: 1rem;
        }
        .body h3 {
            margin: 0 0 0.25rem;
            font-size: 1.2rem;
            white-space: nowrap;
            overflow: hidden;
            text-overflow: ellipsis;
        }
        .meta {
            display: flex;
            gap: 1rem;
            font-size: 0.875rem;
            color: var(--text-muted);
        }
        .meta .rating {
            color: var(--star);
            font-weight: 600;
        }
        .genre {
            margin-top: 0.5rem;
            font-size: 0.75rem;
            text-transform: uppercase;
            letter-spacing: 0.05em;
            color: var(--text-muted);
        }
        .skeleton .poster,
        .skeleton .line {
            animation: pulse 1.5s ease-in-out infinite;
        }
        .skeleton .line {
            height: 1.25rem;
            border-radius: 6px;
            background: var(--surface-muted);
            margin-bottom: 0.5rem;
        }
        .skeleton .line.short {
            width: 66%;
        }
        .notice {
            text-align: center;
            padding: 3rem 0;
            color: var(--text-muted);
        }
        .notice.error {
            color: var(--danger);
        }
        @keyframes pulse {
            50% {
                opacity: 0.5;
            }
        }
    </style>
</head>
<body>
    <main>
        <header>
            <h1>Browse Films</h1>
            <p>Discover and book tickets for the latest movies</p>
        </header>
        <form class="search" action="/films" method="get" role="search">
            <input
                type="search"
                name="q"
                value="__SEARCH_TERM__"
                placeholder="Search films by title or genre..."
                autocomplete="off"
                data-testid="input-search"
            />
        </form>
        <section id="results" data-state="__RENDER_STATE__">
__RESULTS__
        </section>
    </main>
    <script>
        (function() {
            const config = JSON.parse('__CONFIG_JSON__');
            const input = document.querySelector('[data-testid="input-search"]');
            const results = document.getElementById('results');
            let pending = null;
            let pollTimer = null;

            async function loadResults() {
                const params = new URLSearchParams({ q: input.value });
                if (pending) {
                    pending.abort();
                }
                pending = new AbortController();
                try {
                    const response = await fetch(`${config.resultsPath}?${params}`, {
                        signal: pending.signal,
                    });
                    const html = await response.text();
                    results.innerHTML = html;
                    const state = response.headers.get('X-Render-State') || '';
                    results.dataset.state = state;
                    schedulePoll(state);
                } catch (err) {
                    if (err.name !== 'AbortError') {
                        console.error('Unable to refresh film results', err);
                    }
                }
            }

            function schedulePoll(state) {
                clearTimeout(pollTimer);
                if (state === 'loading') {
                    pollTimer = setTimeout(loadResults, config.pollIntervalMs);
                }
            }

            input.form.addEventListener('submit', (event) => {
                event.preventDefault();
                loadResults();
            });
            input.addEventListener('input', () => {
                const url = new URL(window.location.href);
                if (input.value) {
                    url.searchParams.set('q', input.value);
                } else {
                    url.searchParams.delete('q');
                }
                window.history.replaceState(null, '', url);
                loadResults();
            });
            schedulePoll(results.dataset.state);
        })();
    </script>
</body>
</html>
    """
)


def _render_skeleton_card() -> str:
    return (
        '<div class="card skeleton">'
        '<div class="poster"></div>'
        '<div class="body"><div class="line"></div><div class="line short"></div></div>'
        "</div>"
    )


def _render_film_card(film: FilmRecord) -> str:
    film_id = escape(film.id)
    title = escape(film.title)
    if film.poster_url:
        poster = f'<img src="{escape(film.poster_url)}" alt="{title}" />'
    else:
        poster = "No poster"
    return (
        f'<a href="{escape(film.detail_path)}" data-testid="link-film-{film_id}">'
        f'<div class="card" data-testid="card-film-{film_id}">'
        f'<div class="poster">{poster}'
        '<div class="details"><span>View Details</span></div></div>'
        '<div class="body">'
        f"<h3>{title}</h3>"
        '<div class="meta">'
        f'<span class="rating">&#9733; {film.rating_label}</span>'
        f'<span class="duration">{escape(film.duration_label)}</span>'
        "</div>"
        f'<div class="genre">{escape(film.genre)}</div>'
        "</div></div></a>"
    )


def render_results(state: RenderState) -> str:
    """Return the markup for the results region in the given render state."""

    if isinstance(state, Loading):
        cards = "".join(_render_skeleton_card() for _ in range(state.skeleton_count))
        return f'<div class="grid" aria-busy="true">{cards}</div>'
    if isinstance(state, Populated):
        cards = "".join(_render_film_card(film) for film in state.films)
        return f'<div class="grid">{cards}</div>'
    if isinstance(state, Failed):
        return (
            '<div class="notice error" role="alert">'
            f"<p>{escape(ERROR_MESSAGE)}</p></div>"
        )
    if isinstance(state, Empty):
        return f'<div class="notice"><p>{escape(EMPTY_MESSAGE)}</p></div>'
    raise TypeError(f"Unknown render state: {state!r}")


def render_catalog_page(
    settings: Settings,
    view: CatalogView,
    *,
    results_path: str = "/films/results",
) -> str:
    """Return the full HTML for the `/films` browse page."""

    state = view.state()
    config_json = json.dumps(
        {"resultsPath": results_path, "pollIntervalMs": 1000}
    ).replace("</", "<\\/")

    replacements = {
        "__APP_NAME__": escape(settings.app_name),
        "__SEARCH_TERM__": escape(view.search_term),
        "__RENDER_STATE__": state.kind,
        "__CONFIG_JSON__": config_json,
        "__RESULTS__": render_results(state),
    }
    # Single pass, so substituted film text is never rescanned for placeholders.
    return PLACEHOLDER_RE.sub(
        lambda match: replacements.get(match.group(0), match.group(0)),
        CATALOG_TEMPLATE,
    )
