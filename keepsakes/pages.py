"""HTML pages. Each is static; the inline script pulls data from the JSON API."""

STYLE = """
  :root{--gap:12px; --bg:#0b0c10; --fg:#f5f7fb; --muted:#9aa3b2}
  *{box-sizing:border-box}
  body{margin:0;background:#0b0c10;color:#f5f7fb;font:16px/1.5 system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial,sans-serif}
  main{max-width:760px;margin:32px auto;padding:0 16px}
  header{display:flex;justify-content:space-between;align-items:center;gap:12px;margin-bottom:12px}
  h1{margin:0}
  a{color:#8ab4ff}
  .card{background:#0f1219;border:1px solid #27304a;border-radius:14px;padding:18px;margin-bottom:14px}
  form{display:flex;flex-direction:column;gap:14px}
  label{display:flex;flex-direction:column;gap:6px;color:#c7d0e8;font-size:14px}
  label.chk{flex-direction:row;align-items:center;gap:8px}
  input,textarea,select,button{background:#161922;border:1px solid #242837;color:#f5f7fb;padding:10px 12px;border-radius:12px;font:inherit}
  button{cursor:pointer}
  button[disabled]{opacity:.5;cursor:default}
  .row{display:flex;gap:10px;align-items:center;flex-wrap:wrap}
  .muted{color:var(--muted);font-size:14px}
  .pill{font-size:12px;padding:3px 8px;border-radius:999px;border:1px solid #27304a;color:#c7d0e8}
  .error{color:#ff8a80}
  .ok{color:#8ab4ff}
  .hidden{display:none}
"""


def _page(title: str, body: str, script: str = "", extra_style: str = "") -> str:
    return (
        '<!doctype html>\n<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1">\n'
        f"<title>{title}</title>\n<style>{STYLE}{extra_style}</style></head>\n"
        f"<body>\n{body}\n<script>\n{script}\n</script>\n</body></html>\n"
    )


COMMON_JS = """
async function api(path, opts){
  const r = await fetch(path, Object.assign({cache:'no-store'}, opts||{}));
  let d = null;
  try{ d = await r.json(); }catch(e){}
  if(!r.ok){ throw new Error((d && d.error) || ('Request failed ('+r.status+')')); }
  return d;
}
function postJSON(path, body){
  return api(path, {method:'POST', headers:{'Content-Type':'application/json'}, body: JSON.stringify(body||{})});
}
function el(tag, cls, text){
  const e = document.createElement(tag);
  if(cls) e.className = cls;
  if(text !== undefined && text !== null) e.textContent = text;
  return e;
}
"""


LOCKED_HTML = _page("Keepsakes Locked", """
<main>
  <h1>Keepsakes</h1>
  <div class="card">
    <p class="muted"><strong>This event is password protected.</strong> Enter the password to continue.</p>
    <form id="f" autocomplete="off">
      <input id="pw" type="password" placeholder="Password" maxlength="128" required>
      <button type="submit">Enter</button>
      <div id="status" class="error"></div>
    </form>
  </div>
</main>
""", COMMON_JS + """
document.getElementById('f').addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  try{
    await postJSON('/api/auth/verify-password', {password: document.getElementById('pw').value});
    location.reload();
  }catch(e){ document.getElementById('status').textContent = e.message; }
});
""")


HOME_HTML = _page("Keepsakes", """
<main>
  <div id="hero" class="card">
    <h1 id="name">Keepsakes</h1>
    <p id="subtitle" class="muted"></p>
    <p id="instructions"></p>
    <div class="row">
      <a class="pill" href="/upload">Share a keepsake</a>
      <a class="pill" href="/wall">Open the wall</a>
      <a class="pill" href="/gallery">Browse the gallery</a>
    </div>
  </div>
  <p class="muted"><a href="/about">About</a> · <a href="/privacy">Privacy</a> · <a href="/terms">Terms</a></p>
</main>
""", COMMON_JS + """
api('/api/event').then(({event})=>{
  document.title = event.name;
  document.getElementById('name').textContent = event.name;
  document.getElementById('subtitle').textContent = event.subtitle || '';
  document.getElementById('instructions').textContent = event.instructions || '';
  if(event.hero_color) document.getElementById('hero').style.borderColor = event.hero_color;
}).catch(()=>{});
""")


UPLOAD_HTML = _page("Share a keepsake", """
<main>
  <header><h1 id="name">Share a keepsake</h1><nav class="row"><a class="muted" href="/wall">Wall</a></nav></header>
  <p id="instructions" class="muted"></p>
  <form id="uploadForm" class="card">
    <label>Type
      <select id="type" name="type"></select>
    </label>
    <label id="filesWrap">Files
      <input id="files" name="files" type="file" multiple>
    </label>
    <label id="textWrap" class="hidden">Message
      <textarea id="text" name="text" rows="5" maxlength="5000"></textarea>
    </label>
    <label>Caption (optional)
      <input id="caption" name="caption" maxlength="500">
    </label>
    <label>Your name (optional)
      <input id="author" name="name" maxlength="50">
    </label>
    <label id="consentWrap" class="chk hidden"><input type="checkbox" id="consent" name="consent" value="true">
      I agree that this keepsake may be shown on the wall. <a href="/terms">Terms</a></label>
    <button type="submit">Upload</button>
    <div id="status"></div>
  </form>
</main>
""", COMMON_JS + """
const form = document.getElementById('uploadForm');
const typeSel = document.getElementById('type');
const files = document.getElementById('files');
const statusEl = document.getElementById('status');
const btn = form.querySelector('button[type=submit]');
let event = null;

function setStatus(t, cls){ statusEl.textContent = t; statusEl.className = cls || ''; }
function applyType(){
  const t = typeSel.value;
  document.getElementById('filesWrap').classList.toggle('hidden', t === 'text');
  document.getElementById('textWrap').classList.toggle('hidden', t !== 'text');
  files.accept = t === 'video' ? 'video/*' : 'image/*';
  files.multiple = t === 'photo' && event && event.enabled_keepsake_types.gallery;
}

api('/api/event').then(({event: ev})=>{
  event = ev;
  document.getElementById('name').textContent = ev.name;
  document.getElementById('instructions').textContent = ev.instructions || '';
  document.getElementById('consentWrap').classList.toggle('hidden', !ev.consent_required);
  for(const t of ['photo','video','text']){
    if(ev.enabled_keepsake_types[t]){
      const o = el('option', '', t.charAt(0).toUpperCase()+t.slice(1)); o.value = t; typeSel.append(o);
    }
  }
  applyType();
});
typeSel.onchange = applyType;
files.addEventListener('change', ()=>{
  const n = (files.files || []).length;
  if(event && typeSel.value === 'photo' && n > event.gallery_size_limit){
    setStatus(`You can only upload up to ${event.gallery_size_limit} photos in a gallery.`, 'error');
    files.value = '';
  } else {
    setStatus(n ? `${n} file${n===1?'':'s'} selected.` : '');
  }
});

form.addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  const fd = new FormData(form);
  fd.delete('files');
  for(const f of Array.from(files.files || [])) fd.append('files', f, f.name);
  setStatus('Uploading...');
  btn.disabled = true;
  try{
    await api('/api/keepsakes', {method:'POST', body: fd});
    location.href = '/thanks?eventSlug=' + encodeURIComponent(event.slug);
  }catch(e){
    setStatus(e.message, 'error');
  }finally{
    btn.disabled = false;
  }
});
""")


THANKS_HTML = _page("Thank you", """
<main>
  <div class="card">
    <h1>Thank you!</h1>
    <p>Your keepsake is on its way to the wall.</p>
    <div class="row"><a class="pill" href="/upload">Share another</a><a class="pill" href="/wall">Watch the wall</a></div>
  </div>
  <form id="signup" class="card hidden">
    <p class="muted">Leave your email and we'll send you the keepsakes after the event.</p>
    <label>Email <input id="email" type="email" required maxlength="255"></label>
    <label>Name (optional) <input id="gname" maxlength="100"></label>
    <button type="submit">Keep me posted</button>
    <div id="status"></div>
  </form>
</main>
""", COMMON_JS + """
const signup = document.getElementById('signup');
api('/api/event').then(({event})=>{ signup.classList.toggle('hidden', !event.email_registration_enabled); });
signup.addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  const s = document.getElementById('status');
  try{
    await postJSON('/api/guests', {email: document.getElementById('email').value, name: document.getElementById('gname').value});
    s.textContent = 'Thanks, you are on the list.'; s.className = 'ok'; signup.reset();
  }catch(e){ s.textContent = e.message; s.className = 'error'; }
});
""")


WALL_HTML = _page("Memory Wall", """
<header id="bar">
  <div><h1 id="name">Memory Wall</h1><div id="subtitle" class="muted"></div></div>
  <div class="row">
    <a class="muted" href="/">Home</a>
    <a class="muted" href="/upload">Upload</a>
    <button id="mode">Grid</button>
    <button id="fs">Fullscreen</button>
  </div>
</header>
<div id="stage">
  <div id="slide"></div>
  <div id="hud"><span id="count">0/0</span> <span id="state" class="muted"></span></div>
</div>
<div id="grid" class="hidden"></div>
""", COMMON_JS + """
const P = new URLSearchParams(location.search);
let ev = null, slides = [], idx = 0, galleryIdx = new Map(), seen = null;
let timer = null, mode = P.get('view') === 'grid' ? 'grid' : 'swipe', playingVideo = false;

const stage = document.getElementById('stage'), slideEl = document.getElementById('slide');
const gridEl = document.getElementById('grid');

function clearTimer(){ if(timer){ clearTimeout(timer); timer = null; } }

function renderSlide(){
  slideEl.innerHTML = '';
  playingVideo = false;
  document.getElementById('count').textContent = (slides.length ? idx+1 : 0) + '/' + slides.length;
  document.getElementById('state').textContent = ev && ev.paused ? 'Paused' : '';
  if(!slides.length){ slideEl.append(el('p', 'muted', 'No keepsakes yet. Be the first to share one!')); return; }
  const s = slides[idx];
  const box = el('figure', 'frame');
  if(s.type === 'text'){
    box.append(el('blockquote', 'quote', s.text));
  } else if(s.type === 'video'){
    const v = el('video'); v.src = s.file_url; v.autoplay = true; v.muted = true; v.playsInline = true; v.controls = false;
    v.addEventListener('play', ()=>{ playingVideo = true; clearTimer(); });
    v.addEventListener('ended', ()=>{ playingVideo = false; go(idx+1); });
    box.append(v);
  } else {
    const gi = galleryIdx.get(s.id) || 0;
    const img = el('img'); img.src = s.file_urls[Math.min(gi, s.file_urls.length-1)]; img.alt = s.caption || '';
    box.append(img);
    if(s.file_urls.length > 1) box.append(el('div', 'pill', (gi+1)+' / '+s.file_urls.length));
  }
  const meta = [s.caption, s.name ? ('- ' + s.name) : null].filter(Boolean).join(' ');
  if(meta) box.append(el('figcaption', 'muted', meta));
  if(s.pinned) box.append(el('span', 'pill', 'Pinned'));
  slideEl.append(box);
}

function schedule(){
  clearTimer();
  if(!ev || ev.paused || mode !== 'swipe' || slides.length <= 1 || playingVideo) return;
  const s = slides[idx];
  if(s.type === 'video') return;
  if(s.gallery_item_ms){
    timer = setTimeout(()=>{
      const gi = galleryIdx.get(s.id) || 0;
      if(gi < s.file_urls.length - 1){ galleryIdx.set(s.id, gi+1); renderSlide(); schedule(); }
      else { galleryIdx.set(s.id, 0); go(idx+1); }
    }, s.gallery_item_ms);
  } else {
    timer = setTimeout(()=> go(idx+1), s.dwell_ms);
  }
}

function go(i){
  if(!slides.length){ idx = 0; renderSlide(); return; }
  const prev = idx;
  idx = ((i % slides.length) + slides.length) % slides.length;
  if(prev === slides.length - 1 && idx === 0) galleryIdx = new Map();
  renderSlide(); schedule();
}

function applyCommands(cmds){
  for(const c of cmds){
    if(c.reset_gallery) galleryIdx = new Map();
    if(c.command === 'restart') go(0);
    else if(c.command === 'skip_next') go(idx + c.times);
    else if(c.command === 'skip_prev') go(idx - c.times);
  }
}

function renderGrid(){
  gridEl.innerHTML = '';
  for(const s of slides){
    const card = el('article', 'card');
    if(s.type === 'text') card.append(el('p', '', s.text));
    else if(s.type === 'video'){ const v = el('video'); v.src = s.file_url; v.controls = true; card.append(v); }
    else { const img = el('img'); img.loading = 'lazy'; img.src = s.file_urls[0]; card.append(img); }
    const meta = [s.caption, s.name ? ('- ' + s.name) : null].filter(Boolean).join(' ');
    if(meta) card.append(el('div', 'muted', meta));
    gridEl.append(card);
  }
}

function applyMode(){
  stage.classList.toggle('hidden', mode !== 'swipe');
  gridEl.classList.toggle('hidden', mode !== 'grid');
  document.getElementById('mode').textContent = mode === 'swipe' ? 'Grid' : 'Slideshow';
  if(ev) gridEl.style.setProperty('--cols', ev.mobile_grid_columns);
  if(mode === 'grid') renderGrid(); else schedule();
}

async function poll(){
  const q = new URLSearchParams({view: mode});
  if(seen) for(const k in seen) q.set('seen_' + k, seen[k]);
  try{
    const d = await api('/api/wall?' + q.toString());
    const wasPaused = ev && ev.paused;
    const currentId = slides.length ? slides[idx].id : null;
    ev = d.event; seen = d.sequences;
    document.getElementById('name').textContent = ev.name;
    document.getElementById('subtitle').textContent = ev.subtitle || '';
    document.getElementById('fs').classList.toggle('hidden', !ev.enable_fullscreen);
    const changed = JSON.stringify(d.slides.map(s=>[s.id, s.file_urls.length, s.pinned])) !== JSON.stringify(slides.map(s=>[s.id, s.file_urls.length, s.pinned]));
    slides = d.slides;
    if(changed){
      const keep = slides.findIndex(s=>s.id === currentId);
      idx = keep >= 0 ? keep : 0;
      renderSlide(); if(mode === 'grid') renderGrid(); schedule();
    } else if(wasPaused !== ev.paused){
      renderSlide(); schedule();
    }
    applyCommands(d.commands);
  }catch(e){}
}

document.getElementById('mode').onclick = ()=>{ mode = mode === 'swipe' ? 'grid' : 'swipe'; applyMode(); };
document.getElementById('fs').onclick = ()=>{
  if(!document.fullscreenElement) document.documentElement.requestFullscreen().catch(()=>{});
  else document.exitFullscreen().catch(()=>{});
};
window.addEventListener('keydown', (e)=>{
  if(e.key === 'ArrowRight') go(idx+1);
  else if(e.key === 'ArrowLeft'){ galleryIdx = new Map(); go(idx-1); }
  else if(e.key === 'f' || e.key === 'F') document.getElementById('fs').click();
});

applyMode();
poll();
setInterval(poll, 4000);
""", """
  header{padding:12px 16px;background:#0f1219;border-bottom:1px solid #1e2332;margin:0}
  #stage{position:fixed;top:72px;left:0;right:0;bottom:0;display:grid;place-items:center}
  .frame{margin:0;display:flex;flex-direction:column;align-items:center;gap:8px}
  .frame img,.frame video{max-width:96vw;max-height:78vh;object-fit:contain;border-radius:12px}
  .quote{font-size:2rem;max-width:70vw;text-align:center}
  #hud{position:fixed;left:14px;bottom:10px;font-size:14px;opacity:.7}
  #grid{--cols:2;display:grid;grid-template-columns:repeat(auto-fill,minmax(260px,1fr));gap:var(--gap);padding:16px}
  @media (max-width:640px){ #grid{grid-template-columns:repeat(var(--cols),1fr)} }
  #grid img,#grid video{width:100%;border-radius:10px}
""")


GALLERY_HTML = _page("Gallery", """
<main>
  <header><h1 id="name">Gallery</h1>
    <nav class="row"><a class="muted" href="/wall">Wall</a><a id="zip" class="muted hidden" href="/download">Download all</a></nav>
  </header>
  <div id="list"></div>
  <p id="status" class="muted"></p>
</main>
""", COMMON_JS + """
api('/api/gallery').then(({event, keepsakes})=>{
  document.getElementById('name').textContent = event.name;
  document.getElementById('zip').classList.toggle('hidden', !event.allow_downloads);
  const list = document.getElementById('list');
  for(const k of keepsakes){
    const card = el('article', 'card');
    if(k.type === 'text') card.append(el('p', '', k.text));
    for(const u of k.file_urls){
      if(k.type === 'video'){ const v = el('video'); v.src = u; v.controls = true; v.style.width = '100%'; card.append(v); }
      else { const i = el('img'); i.src = u; i.loading = 'lazy'; i.style.width = '100%'; card.append(i); }
    }
    const meta = [k.caption, k.name ? ('- ' + k.name) : null].filter(Boolean).join(' ');
    if(meta) card.append(el('div', 'muted', meta));
    if(event.allow_downloads && k.file_urls.length){
      const a = el('a', 'pill', 'Download'); a.href = '/download/' + k.id; card.append(a);
    }
    list.append(card);
  }
  document.getElementById('status').textContent = `Showing ${keepsakes.length} keepsake(s)`;
}).catch(e=>{ document.getElementById('status').textContent = e.message; });
""")


ADMIN_HTML = _page("Admin", """
<main>
  <header><h1>Admin</h1><nav class="row"><a class="muted" href="/wall">Wall</a><button id="logout" class="hidden">Log out</button></nav></header>
  <form id="login" class="card hidden">
    <label>Username <input id="user" autocomplete="username" required></label>
    <label>Password <input id="pass" type="password" autocomplete="current-password" required></label>
    <button type="submit">Log in</button>
    <div id="loginStatus" class="error"></div>
  </form>
  <section id="dash" class="hidden">
    <div class="card">
      <h2>Wall controls</h2>
      <div class="row">
        <button id="pause">Pause</button>
        <button data-cmd="skip-prev">Previous</button>
        <button data-cmd="skip-next">Next</button>
        <button data-cmd="restart">Restart</button>
      </div>
    </div>
    <div class="card">
      <h2>Keepsakes</h2>
      <div id="keepsakes"></div>
    </div>
    <form id="settings" class="card">
      <h2>Event settings</h2>
      <label>Name <input name="name" maxlength="100"></label>
      <label>Slug <input name="slug" maxlength="50" pattern="[a-z0-9-]+"></label>
      <label>Subtitle <input name="subtitle" maxlength="150"></label>
      <label>Instructions <textarea name="instructions" maxlength="500"></textarea></label>
      <label>Autoplay delay (ms) <input name="autoplay_delay" type="number" min="1000" max="30000"></label>
      <label>Gallery photo delay (ms) <input name="gallery_item_delay" type="number" min="1000" max="10000"></label>
      <label>Gallery size limit <input name="gallery_size_limit" type="number" min="1" max="20"></label>
      <label>Mobile grid columns <input name="mobile_grid_columns" type="number" min="1" max="4"></label>
      <label class="chk"><input type="checkbox" name="consent_required"> Consent required</label>
      <label class="chk"><input type="checkbox" name="allow_downloads"> Allow downloads</label>
      <label class="chk"><input type="checkbox" name="show_captions"> Show captions</label>
      <label class="chk"><input type="checkbox" name="show_author_names"> Show author names</label>
      <label class="chk"><input type="checkbox" name="enable_fullscreen"> Enable fullscreen</label>
      <label class="chk"><input type="checkbox" name="email_registration_enabled"> Email registration</label>
      <div class="row" id="types"></div>
      <button type="submit">Save settings</button>
      <div id="settingsStatus"></div>
    </form>
    <form id="sitepw" class="card">
      <h2>Site password</h2>
      <label>New password (empty turns protection off) <input id="newpw" type="password"></label>
      <button type="submit">Update</button>
      <div id="pwStatus"></div>
    </form>
    <div class="card">
      <h2>Activity</h2>
      <select id="logcat"><option value="">All</option><option>upload</option><option>guest</option><option>admin</option><option>system</option></select>
      <div id="logs" class="muted"></div>
    </div>
    <div class="card">
      <h2>Danger zone</h2>
      <button id="reset">Reset everything</button>
    </div>
  </section>
</main>
""", COMMON_JS + """
const TYPES = ['photo','video','text','gallery'];
let state = null;

function show(id, on){ document.getElementById(id).classList.toggle('hidden', !on); }

async function boot(){
  const s = await api('/api/admin/session');
  show('login', !s.authenticated); show('dash', s.authenticated); show('logout', s.authenticated);
  if(s.authenticated) await load();
}

async function load(){
  state = await api('/api/admin/dashboard');
  const ev = state.event;
  document.getElementById('pause').textContent = ev.paused ? 'Resume' : 'Pause';
  const f = document.getElementById('settings');
  for(const input of f.querySelectorAll('input,textarea')){
    if(!input.name) continue;
    if(input.type === 'checkbox') input.checked = !!ev[input.name];
    else input.value = ev[input.name] == null ? '' : ev[input.name];
  }
  const types = document.getElementById('types'); types.innerHTML = '';
  for(const t of TYPES){
    const l = el('label', 'chk'); const c = el('input'); c.type = 'checkbox'; c.dataset.type = t;
    c.checked = ev.enabled_keepsake_types[t]; l.append(c, document.createTextNode(' ' + t)); types.append(l);
  }
  renderKeepsakes(); loadLogs();
}

function renderKeepsakes(){
  const box = document.getElementById('keepsakes'); box.innerHTML = '';
  for(const k of state.keepsakes){
    const row = el('div', 'row card');
    row.append(el('span', 'pill', k.type), el('span', '', k.caption || k.text || k.file_urls.length + ' file(s)'));
    if(k.name) row.append(el('span', 'muted', k.name));
    const act = (label, path, body)=>{
      const b = el('button', '', label);
      b.onclick = async ()=>{ try{ await postJSON(path, body); await load(); }catch(e){ alert(e.message); } };
      row.append(b);
    };
    act(k.pinned ? 'Unpin' : 'Pin', `/api/admin/keepsakes/${k.id}/pin`, {pinned: k.pinned});
    act(k.hidden ? 'Show' : 'Hide', `/api/admin/keepsakes/${k.id}/hide`, {hidden: k.hidden});
    if(k.type === 'gallery') k.file_urls.forEach((u, i)=> act('Remove photo ' + (i+1), `/api/admin/keepsakes/${k.id}/items/${i}/delete`, {}));
    act('Delete', `/api/admin/keepsakes/${k.id}/delete`, {});
    box.append(row);
  }
}

async function loadLogs(){
  const cat = document.getElementById('logcat').value;
  const {logs} = await api('/api/admin/logs' + (cat ? ('?category=' + cat) : ''));
  const box = document.getElementById('logs'); box.innerHTML = '';
  for(const l of logs){
    box.append(el('div', l.level === 'error' ? 'error' : '', new Date(l.created_at).toLocaleString() + ' [' + l.category + '] ' + l.message));
  }
}

document.getElementById('login').addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  try{
    await postJSON('/api/admin/login', {username: document.getElementById('user').value, password: document.getElementById('pass').value});
    await boot();
  }catch(e){ document.getElementById('loginStatus').textContent = e.message; }
});
document.getElementById('logout').onclick = async ()=>{ await postJSON('/api/admin/logout'); await boot(); };
document.getElementById('pause').onclick = async ()=>{ await postJSON('/api/admin/event/pause', {paused: !state.event.paused}); await load(); };
for(const b of document.querySelectorAll('[data-cmd]')){
  b.onclick = ()=> postJSON('/api/admin/event/' + b.dataset.cmd).catch(e=>alert(e.message));
}
document.getElementById('settings').addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  const body = {}; const s = document.getElementById('settingsStatus');
  for(const input of ev.target.querySelectorAll('input[name],textarea[name]')){
    if(input.type === 'checkbox') body[input.name] = input.checked;
    else if(input.type === 'number') body[input.name] = Number(input.value);
    else body[input.name] = input.value;
  }
  body.enabled_keepsake_types = {};
  for(const c of document.querySelectorAll('#types input')) body.enabled_keepsake_types[c.dataset.type] = c.checked;
  try{ await postJSON('/api/admin/event', body); s.textContent = 'Saved.'; s.className = 'ok'; await load(); }
  catch(e){ s.textContent = e.message; s.className = 'error'; }
});
document.getElementById('sitepw').addEventListener('submit', async (ev)=>{
  ev.preventDefault(); const s = document.getElementById('pwStatus');
  try{ await postJSON('/api/admin/site-password', {password: document.getElementById('newpw').value}); s.textContent = 'Updated.'; s.className = 'ok'; }
  catch(e){ s.textContent = e.message; s.className = 'error'; }
});
document.getElementById('logcat').onchange = loadLogs;
document.getElementById('reset').onclick = async ()=>{
  if(!confirm('Delete the event, every keepsake and all settings?')) return;
  await postJSON('/api/admin/reset', {confirm: true}); location.href = '/setup';
};
boot();
""")


SETUP_HTML = _page("Set up Keepsakes", """
<main>
  <h1>Welcome to Keepsakes</h1>
  <p class="muted">Create your event and the admin account. Everything can be changed later.</p>
  <form id="setup" class="card">
    <label>Event name <input name="event_name" required maxlength="100"></label>
    <label>Event slug <input name="event_slug" required maxlength="50" pattern="[a-z0-9-]+"></label>
    <label>Subtitle <input name="event_subtitle" maxlength="150"></label>
    <label>Instructions <textarea name="event_instructions" maxlength="500"></textarea></label>
    <label>Admin username <input name="admin_username" required minlength="3" maxlength="50"></label>
    <label>Admin password <input name="admin_password" type="password" required minlength="6"></label>
    <label class="chk"><input type="checkbox" name="enable_password_protection"> Protect the site with a password</label>
    <label>Site password <input name="site_password" type="password"></label>
    <label class="chk"><input type="checkbox" name="enable_google_analytics"> Google Analytics</label>
    <label>Measurement ID <input name="google_analytics_id" placeholder="G-XXXXXXX"></label>
    <label class="chk"><input type="checkbox" name="consent_required" checked> Guests must give consent</label>
    <label class="chk"><input type="checkbox" name="allow_downloads" checked> Allow downloads</label>
    <label class="chk"><input type="checkbox" name="email_registration_enabled"> Collect guest emails</label>
    <button type="submit">Create event</button>
    <div id="status" class="error"></div>
  </form>
</main>
""", COMMON_JS + """
const f = document.getElementById('setup');
api('/api/setup/defaults').then((d)=>{
  for(const k in d){
    const input = f.elements[k];
    if(!input) continue;
    if(input.type === 'checkbox') input.checked = !!d[k]; else input.value = d[k];
  }
}).catch(()=>{});
f.event_name.addEventListener('input', ()=>{
  if(!f.event_slug.dataset.touched) f.event_slug.value = f.event_name.value.toLowerCase().replace(/[^a-z0-9]+/g,'-').replace(/^-+|-+$/g,'');
});
f.event_slug.addEventListener('input', ()=>{ f.event_slug.dataset.touched = '1'; });
f.addEventListener('submit', async (ev)=>{
  ev.preventDefault();
  const body = {};
  for(const input of f.querySelectorAll('input[name],textarea[name]')){
    body[input.name] = input.type === 'checkbox' ? input.checked : input.value;
  }
  try{ await postJSON('/api/setup', body); location.href = '/setup/success'; }
  catch(e){ document.getElementById('status').textContent = e.message; }
});
""")


SETUP_SUCCESS_HTML = _page("Setup complete", """
<main>
  <div class="card">
    <h1>You're all set!</h1>
    <p>Your event is ready. Share the upload link with your guests and put the wall on the big screen.</p>
    <div class="row"><a class="pill" href="/admin">Open admin</a><a class="pill" href="/upload">Upload page</a><a class="pill" href="/wall">Wall</a></div>
  </div>
</main>
""")


ABOUT_HTML = _page("About Keepsakes", """
<main>
  <h1>About</h1>
  <div class="card">
    <p>Keepsakes collects photos, videos and messages from the guests of an event and plays them on a shared memory wall.</p>
    <p class="muted"><a href="/">Home</a></p>
  </div>
</main>
""")


PRIVACY_HTML = _page("Privacy", """
<main>
  <h1>Privacy</h1>
  <div class="card">
    <p>Keepsakes stores the files, captions, names and messages you upload so they can be shown on the event wall.
    Email addresses are only stored when you leave them on the thank-you page, and are only used to share the keepsakes after the event.</p>
    <p>The event organizer can hide or delete any keepsake at any time. Ask them to remove anything you shared.</p>
    <p class="muted"><a href="/">Home</a></p>
  </div>
</main>
""")


TERMS_HTML = _page("Terms", """
<main>
  <h1>Terms</h1>
  <div class="card">
    <p>By uploading you confirm that you have the right to share the content and agree that it may be displayed
    to the guests of this event and downloaded by them when the organizer allows downloads.</p>
    <p class="muted"><a href="/">Home</a></p>
  </div>
</main>
""")
