"""
webapp.py – the browser viewer, served when www/index.html is absent.

AppShell reads ?project= from the URL and mounts a player for it (Up /
Down change its fps).  Without one it lists the projects, or, when a
static manifest is in use, plays every published animation inline.

The player mirrors playback.py: frames load eagerly, a requestAnimationFrame
loop steps once per elapsed frame interval, and blur / prefers-reduced-motion
stop it.

The data source is picked once at startup: a published showcase.json
(static manifest) if one is served, otherwise the live endpoints.
"""

INDEX_HTML = r"""<!doctype html>
<html lang="en"><head><meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>CASCII Viewer</title>
<style>
 body{background:#000;color:#ddd;font-family:monospace;margin:0;padding:1em;}
 a{color:#0f0;}
 header{display:flex;gap:1.5em;align-items:baseline;}
 pre.frame{line-height:1;overflow:hidden;margin:0;}
 .status{color:#888;}
</style></head><body>
<header><h1>CASCII Viewer</h1><a id="back" href="./" hidden>&larr; Back to project list</a></header>
<main id="main"><p class="status">Loading...</p></main>

<script>
"use strict";
const DEFAULT_FPS = 24;
const frameName = (i) => `frame_${String(i).padStart(4, "0")}.txt`;
const toCount = (v) => { const n = Math.floor(Number(v)); return n > 0 ? n : 0; };

class FrameLoadFailed extends Error {
  constructor(project, index) {
    super(`Could not load frame ${index} of '${project}'`);
    this.project = project; this.index = index;
  }
}

// ── data sources ──────────────────────────────────────────────────────
class LiveSource {
  async listProjects() {
    try {
      const r = await fetch("/projects.json", {cache: "no-store"});
      if (!r.ok) return [];
      const data = await r.json();
      return Array.isArray(data.projects) ? data.projects : [];
    } catch (e) { console.error("Could not fetch projects:", e); return []; }
  }
  async resolveFrameCount(project) {
    try {
      const r = await fetch(`/api/projects/${encodeURIComponent(project)}/frames-count`);
      if (!r.ok) return 0;
      return toCount((await r.json()).frameCount);
    } catch (e) { return 0; }
  }
  fpsFor(project) { return null; }
  async loadFrame(project, index) {
    let r;
    try { r = await fetch(`/projects/${encodeURIComponent(project)}/${frameName(index)}`); }
    catch (e) { throw new FrameLoadFailed(project, index); }
    if (!r.ok) throw new FrameLoadFailed(project, index);
    return r.text();
  }
}

class StaticManifestSource extends LiveSource {
  constructor(entries) { super(); this.entries = new Map(entries.map(e => [e.name, e])); }
  async listProjects() { return [...this.entries.keys()]; }
  async resolveFrameCount(project) {
    const e = this.entries.get(project); return e ? toCount(e.frameCount) : 0;
  }
  fpsFor(project) { const e = this.entries.get(project); return e && e.fps > 0 ? e.fps : null; }
}

async function pickSource() {
  try {
    const r = await fetch("showcase.json");
    if (r.ok) {
      const data = await r.json();
      const entries = Array.isArray(data) ? data : data.projects;
      if (Array.isArray(entries)) return new StaticManifestSource(entries);
    }
  } catch (e) { /* no manifest published */ }
  return new LiveSource();
}

// ── playback ──────────────────────────────────────────────────────────
function advance(clock, now) {
  if (clock.lastTick === null) { clock.lastTick = now; return 0; }
  const steps = Math.floor((now - clock.lastTick) / clock.intervalMs);
  if (steps > 0) clock.lastTick += steps * clock.intervalMs;
  return steps;
}

class Player {
  constructor(source, el, fps) {
    this.source = source; this.el = el; this.fps = fps;
    this.frames = []; this.current = 0; this.clock = null;
    this.reducedMotion = window.matchMedia("(prefers-reduced-motion: reduce)").matches === true;
    this.onFocus = () => this.start();
    this.onBlur = () => this.pause();
  }
  async load(project, frameCount) {
    this.teardown();
    this.project = project;
    this.el.textContent = "Loading ASCII animation...";
    const fps = this.source.fpsFor(project) || this.fps;
    let frames = [];
    try {
      const n = frameCount !== undefined ? toCount(frameCount)
                                         : await this.source.resolveFrameCount(project);
      for (let i = 1; i <= n; i++) frames.push(await this.source.loadFrame(project, i));
    } catch (e) {
      if (this.project !== project) return;
      this.el.textContent = e.message; return;
    }
    if (this.project !== project) return;
    this.frames = frames; this.current = 0;
    this.clock = {intervalMs: 1000 / fps, lastTick: null, handle: null};
    if (!frames.length) { this.el.textContent = "No frames loaded"; return; }
    this.render();
    window.addEventListener("focus", this.onFocus);
    window.addEventListener("blur", this.onBlur);
    if (document.visibilityState === "visible") this.start();
  }
  setFps(fps) {
    if (!(fps > 0)) return;
    this.fps = fps;
    if (this.clock) this.clock.intervalMs = 1000 / fps;
  }
  get currentFps() { return this.clock ? 1000 / this.clock.intervalMs : this.fps; }
  start() {
    const clock = this.clock;
    if (!clock || !this.frames.length || this.reducedMotion || clock.handle !== null) return;
    clock.handle = requestAnimationFrame((t) => this.tick(clock, t));
  }
  pause() {
    const clock = this.clock;
    if (!clock || clock.handle === null) return;
    cancelAnimationFrame(clock.handle);
    clock.handle = null; clock.lastTick = null;
  }
  tick(clock, now) {
    if (clock !== this.clock || clock.handle === null) return;
    const steps = advance(clock, now);
    if (steps > 0) { this.current = (this.current + steps) % this.frames.length; this.render(); }
    clock.handle = requestAnimationFrame((t) => this.tick(clock, t));
  }
  render() { this.el.textContent = this.frames[this.current]; }
  teardown() {
    this.pause();
    window.removeEventListener("focus", this.onFocus);
    window.removeEventListener("blur", this.onBlur);
    this.clock = null; this.frames = []; this.current = 0; this.project = null;
  }
}

// ── app shell ─────────────────────────────────────────────────────────
function el(tag, text) { const e = document.createElement(tag); if (text) e.textContent = text; return e; }

function renderList(main, projects) {
  if (!projects.length) {
    main.replaceChildren(el("p", "No projects found. Use the 'cascii-view' command to add a new project."));
    return;
  }
  const ul = el("ul");
  for (const p of projects) {
    const li = el("li"); const a = el("a", p);
    a.href = `?project=${encodeURIComponent(p)}`; li.append(a); ul.append(li);
  }
  main.replaceChildren(el("h2", "Available Projects"), ul);
}

function mountPlayer(root, source, project) {
  const pre = el("pre"); pre.className = "frame";
  root.append(el("h2", project), pre);
  return new Player(source, pre, DEFAULT_FPS);
}

function bindFpsKeys(player) {
  window.addEventListener("keydown", (ev) => {
    if (ev.key === "ArrowUp") player.setFps(player.currentFps + 1);
    else if (ev.key === "ArrowDown") player.setFps(Math.max(1, player.currentFps - 1));
  });
}

async function main() {
  const root = document.getElementById("main");
  const source = await pickSource();
  const projects = await source.listProjects();
  const wanted = new URLSearchParams(window.location.search).get("project");
  let players = [];
  window.addEventListener("pagehide", () => players.forEach(p => p.teardown()));

  if (wanted && projects.includes(wanted)) {
    document.getElementById("back").hidden = false;
    root.replaceChildren();
    const player = mountPlayer(root, source, wanted);
    players = [player];
    bindFpsKeys(player);
    await player.load(wanted);
    return;
  }
  if (source instanceof StaticManifestSource && projects.length) {
    // showcase: every published animation inline, each at its own count and fps
    root.replaceChildren();
    players = projects.map(p => mountPlayer(root, source, p));
    await Promise.all(players.map((player, i) =>
      player.load(projects[i], source.entries.get(projects[i]).frameCount)));
    return;
  }
  renderList(root, projects);
}

main();
</script>
</body></html>
"""
