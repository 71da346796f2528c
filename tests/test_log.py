import threading

from dentview.log import Log


def test_file_not_created_before_first_message(tmp_path):
    path = tmp_path / "app.log"
    log = Log(path)
    assert not path.exists()
    log.i("tag", "hello")
    log.close()
    assert path.exists()


def test_lines_have_tag_kind_and_message(tmp_path):
    path = tmp_path / "app.log"
    with Log(path) as log:
        log.d("A", "one")
        log.i("B", "two")
        log.e("C", "three")
    assert path.read_text(encoding="utf-8").splitlines() == [
        "ADEBUG: one",
        "BINFO: two",
        "CERROR: three",
    ]


def test_existing_file_is_replaced(tmp_path):
    path = tmp_path / "app.log"
    path.write_text("old content\n", encoding="utf-8")
    with Log(path) as log:
        log.i("t", "new")
    assert path.read_text(encoding="utf-8") == "tINFO: new\n"


def test_unicode_messages_are_kept(tmp_path):
    path = tmp_path / "app.log"
    with Log(path) as log:
        log.e("图片工厂类", "使用了不存在的滤镜")
    assert path.read_text(encoding="utf-8") == "图片工厂类ERROR: 使用了不存在的滤镜\n"


def test_concurrent_writes_keep_whole_lines(tmp_path):
    path = tmp_path / "app.log"
    log = Log(path)

    def worker(n):
        for k in range(50):
            log.i(f"w{n}", str(k))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    log.close()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 200
    assert all("INFO: " in line for line in lines)