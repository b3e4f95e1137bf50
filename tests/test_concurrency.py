"""Tests for concurrent loads and renders."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from viewengine import Engine, MemoryFileSystem
from viewengine.lock import RWLock

LAYOUT = "<body>{% block content %}empty{% endblock %}</body>"


class SlowCountingFS(MemoryFileSystem):
    """Memory filesystem whose walks are counted and take a little time."""

    def __init__(self, files, delay=0.01):
        super().__init__(files)
        self.delay = delay
        self.walks = 0
        self._count_lock = threading.Lock()

    def walk(self, root="."):
        with self._count_lock:
            self.walks += 1
        time.sleep(self.delay)
        return super().walk(root)


def make_fs(**kwargs):
    return SlowCountingFS(
        {
            "layouts/main.html": LAYOUT,
            "index.html": "{% block content %}<p>{{ Title }}</p>{% endblock %}",
        },
        **kwargs,
    )


def test_concurrent_first_loads_compile_once():
    """Threads racing on the first load only walk the tree once."""
    fs = make_fs()
    engine = Engine.from_filesystem(fs, ".html").layout("layouts/main")
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        engine.load()

    with ThreadPoolExecutor(max_workers=8) as pool:
        for future in [pool.submit(worker) for _ in range(8)]:
            future.result()

    assert fs.walks == 1
    assert engine.loaded


def test_concurrent_renders_are_identical():
    """Steady-state renders from many threads produce the same output."""
    fs = make_fs(delay=0)
    engine = Engine.from_filesystem(fs, ".html").layout("layouts/main")
    engine.load()

    def worker(i):
        return engine.render_string("index", {"Title": "Hi"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(64)))

    assert set(results) == {"<body><p>Hi</p></body>"}
    assert fs.walks == 1


def test_concurrent_renders_with_reload():
    """Reload mode serializes renders; every render still sees a full store."""
    fs = make_fs(delay=0.001)
    engine = Engine.from_filesystem(fs, ".html").layout("layouts/main").reload(True)

    def worker(i):
        return engine.render_string("index", {"Title": str(i)})

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(32)))

    assert results == [f"<body><p>{i}</p></body>" for i in range(32)]
    assert fs.walks == 32


def test_renders_during_writes_see_old_or_new_template():
    """Renders racing a file edit get either version, never a broken store."""
    fs = make_fs(delay=0)
    engine = Engine.from_filesystem(fs, ".html").layout("layouts/main").reload(True)
    engine.load()
    stop = threading.Event()

    def editor():
        i = 0
        while not stop.is_set():
            body = "v1" if i % 2 else "v2"
            fs.write("index.html", "{% block content %}" + body + "{% endblock %}")
            i += 1
            time.sleep(0.0005)

    thread = threading.Thread(target=editor)
    thread.start()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: engine.render_string("index"), range(50)))
    finally:
        stop.set()
        thread.join()

    expected = {
        "<body><p></p></body>",
        "<body>v1</body>",
        "<body>v2</body>",
    }
    assert set(results) <= expected


class BlockingWalkFS(MemoryFileSystem):
    """Memory filesystem whose walk signals entry and waits to be released."""

    def __init__(self, files):
        super().__init__(files)
        self.entered = threading.Event()
        self.release = threading.Event()

    def walk(self, root="."):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().walk(root)


def test_setter_during_load_leaves_engine_stale():
    """A setter called mid-load waits for it, so the load cannot hide the change."""
    fs = BlockingWalkFS({"page.html": "<p>{{ Name }}</p>"})
    engine = Engine.from_filesystem(fs, ".html")

    loader = threading.Thread(target=engine.load)
    loader.start()
    assert fs.entered.wait(timeout=5)

    setter = threading.Thread(target=engine.autoescape, args=(False,))
    setter.start()
    setter.join(timeout=0.05)
    assert setter.is_alive()

    fs.release.set()
    loader.join(timeout=5)
    setter.join(timeout=5)

    assert not engine.loaded
    assert engine.render_string("page", {"Name": "&"}) == "<p>&</p>"


def test_rwlock_allows_concurrent_readers():
    """Several readers can hold the lock together."""
    lock = RWLock()
    inside = threading.Barrier(3, timeout=5)

    def reader():
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert not inside.broken


def test_rwlock_writer_excludes_readers():
    """A reader waits while the writer holds the lock."""
    lock = RWLock()
    events = []
    writer_in = threading.Event()

    def writer():
        with lock.write():
            writer_in.set()
            time.sleep(0.05)
            events.append("writer done")

    def reader():
        writer_in.wait()
        with lock.read():
            events.append("reader")

    w = threading.Thread(target=writer)
    r = threading.Thread(target=reader)
    w.start()
    r.start()
    w.join()
    r.join()

    assert events == ["writer done", "reader"]
