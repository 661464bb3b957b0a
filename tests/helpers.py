# Builders for editor-style diagram dictionaries used across the tests
from flow_simulation.graph_view import build_process_graph


def event(node_id, event_type, label=None):
    return {"id": node_id, "type": "event",
            "data": {"nodeType": "event", "eventType": event_type, "label": label or node_id}}


def task(node_id, label=None):
    return {"id": node_id, "type": "process",
            "data": {"nodeType": "process", "processType": "task", "label": label or node_id}}


def gateway(node_id, gateway_type, label=None):
    return {"id": node_id, "type": "gateway",
            "data": {"nodeType": "gateway", "gatewayType": gateway_type, "label": label or node_id}}


def flow(edge_id, source, target, condition="", is_default=False):
    return {"id": edge_id, "source": source, "target": target, "type": "sequence-flow",
            "data": {"condition": condition, "isDefault": is_default}}


def graph_of(nodes, edges):
    return build_process_graph(nodes, edges)


class ManualTimer:
    """Stands in for threading.Timer; fires only when the test says so."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self):
        return self.timers[-1]

    def live(self):
        return [timer for timer in self.timers if not timer.cancelled]
