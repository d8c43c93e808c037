import threading

from labdesk.adapters.memory.in_memory import InMemoryConversationMemory


def test_history_is_stamped_and_copied():
    sesh = InMemoryConversationMemory().for_session("s-1")
    sesh.append({"id": "u-1", "role": "user", "content": "hi"})
    history = sesh.history()
    assert history[0]["timestamp"].endswith("Z")
    history.append({"role": "user"})
    assert len(sesh.history()) == 1


def test_prune_keeps_recent_messages_only():
    sesh = InMemoryConversationMemory(max_messages=3).for_session("s-1")
    for i in range(5):
        sesh.append({"id": f"u-{i}", "role": "user", "content": str(i)})
    assert [m["content"] for m in sesh.history()] == ["2", "3", "4"]


def test_sessions_are_isolated_and_clearable():
    memory = InMemoryConversationMemory()
    a = memory.for_session("a")
    b = memory.for_session("b")
    a.add_created_order({"id": "O7001"})
    a.mark_dispatched("m1")
    assert b.created_orders() == []
    assert b.dispatched() == set()

    a.clear()
    assert memory.for_session("a").created_orders() == []
    assert memory.for_session("a").dispatched() == set()


def test_concurrent_first_use_of_a_session_keeps_every_order():
    memory = InMemoryConversationMemory()
    barrier = threading.Barrier(8)

    def place(n):
        barrier.wait()
        memory.for_session("shared").add_created_order({"id": f"O70{n:02d}"})

    threads = [threading.Thread(target=place, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(memory.for_session("shared").created_orders()) == 8
