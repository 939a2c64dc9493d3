import os
import sys
import threading
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from document_queue import DocumentQueue


class TestDocumentQueue(unittest.TestCase):
    def setUp(self) -> None:
        self.queue = DocumentQueue("test")

    def tearDown(self) -> None:
        self.queue.shutdown()

    def test_requests_run_in_submission_order(self) -> None:
        seen = []
        futures = [self.queue.submit(f"job-{i}", seen.append, i) for i in range(20)]
        for future in futures:
            future.result(timeout=5)
        self.assertEqual(seen, list(range(20)))

    def test_requests_run_on_one_thread(self) -> None:
        names = [self.queue.call("who", lambda: threading.current_thread().name) for _ in range(3)]
        self.assertEqual(len(set(names)), 1)
        self.assertNotEqual(names[0], threading.current_thread().name)

    def test_exception_is_delivered_once(self) -> None:
        def boom():
            raise ValueError("bad value")

        future = self.queue.submit("boom", boom)
        with self.assertRaises(ValueError):
            future.result(timeout=5)
        self.assertEqual(self.queue.call("after", lambda: 42), 42)

    def test_read_after_write_sees_write(self) -> None:
        state = {"value": 0}

        def write():
            state["value"] = 5

        self.queue.submit("write", write)
        self.assertEqual(self.queue.call("read", lambda: state["value"]), 5)

    def test_submit_after_shutdown_fails(self) -> None:
        self.queue.shutdown()
        with self.assertRaises(RuntimeError):
            self.queue.submit("late", lambda: None)

    def test_shutdown_racing_submitters_leaves_no_stranded_request(self) -> None:
        accepted = []
        started = threading.Barrier(5)

        def submitter():
            started.wait()
            while True:
                try:
                    accepted.append(self.queue.submit("tick", lambda: None))
                except RuntimeError:
                    return

        threads = [threading.Thread(target=submitter) for _ in range(4)]
        for thread in threads:
            thread.start()
        started.wait()
        self.queue.shutdown(wait=True)
        for thread in threads:
            thread.join(timeout=5)
        self.assertTrue(accepted)
        self.assertTrue(all(f.done() for f in accepted))

    def test_requests_queued_before_shutdown_complete(self) -> None:
        gate = threading.Event()
        first = self.queue.submit("wait", gate.wait, 5)
        second = self.queue.submit("after", lambda: "done")
        gate.set()
        self.queue.shutdown(wait=True)
        self.assertTrue(first.result(timeout=0))
        self.assertEqual(second.result(timeout=0), "done")


if __name__ == "__main__":
    unittest.main()
