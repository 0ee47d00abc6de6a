"""Tests for the scene graph read interface."""

import threading

import numpy as np
import pytest

from dsg_lcd.scene_graph import (
    AgentNodeAttributes,
    DsgLayers,
    DynamicSceneGraph,
    NodeAttributes,
    NodeSymbol,
    SceneGraphLayer,
    SemanticNodeAttributes,
    node_label,
)


class TestNodeSymbol:
    """Test suite for node id encoding."""

    def test_round_trip(self):
        symbol = NodeSymbol("p", 12)
        assert NodeSymbol.from_id(symbol.value) == symbol
        assert node_label(symbol.value) == "p12"
        assert int(symbol) == symbol.value

    def test_prefixes_give_distinct_ids(self):
        assert NodeSymbol("p", 1).value != NodeSymbol("O", 1).value

    def test_invalid_category(self):
        with pytest.raises(ValueError, match="single character"):
            NodeSymbol("pp", 0)


class TestSceneGraphLayer:
    """Test suite for SceneGraphLayer."""

    def test_add_and_lookup(self):
        layer = SceneGraphLayer(DsgLayers.PLACES)
        node_id = NodeSymbol("p", 0).value
        layer.add_node(node_id, NodeAttributes(position=[1.0, 2.0, 3.0]))

        node = layer.get_node(node_id)
        assert node is not None
        assert node.layer == DsgLayers.PLACES
        np.testing.assert_allclose(layer.get_position(node_id), [1.0, 2.0, 3.0])
        assert node_id in layer
        assert len(layer) == 1

    def test_missing_node(self):
        layer = SceneGraphLayer(DsgLayers.PLACES)
        missing = NodeSymbol("p", 5).value

        assert layer.get_node(missing) is None
        with pytest.raises(KeyError, match="Missing node p5"):
            layer.get_position(missing)

    def test_duplicate_node(self):
        layer = SceneGraphLayer(DsgLayers.OBJECTS)
        layer.add_node(1, NodeAttributes(position=np.zeros(3)))
        with pytest.raises(ValueError, match="already in layer"):
            layer.add_node(1, NodeAttributes(position=np.zeros(3)))

    def test_remove_node(self):
        layer = SceneGraphLayer(DsgLayers.OBJECTS)
        layer.add_node(1, NodeAttributes(position=np.zeros(3)))

        assert layer.remove_node(1)
        assert not layer.remove_node(1)
        assert layer.get_node(1) is None

    def test_position_is_a_copy(self):
        layer = SceneGraphLayer(DsgLayers.OBJECTS)
        layer.add_node(1, NodeAttributes(position=np.zeros(3)))

        layer.get_position(1)[0] = 10.0

        np.testing.assert_allclose(layer.get_position(1), np.zeros(3))

    def test_bad_position_shape(self):
        with pytest.raises(ValueError, match="Position must be"):
            NodeAttributes(position=[1.0, 2.0])


class TestSceneGraphNode:
    """Test suite for typed attribute access."""

    def test_attributes_as(self):
        layer = SceneGraphLayer(DsgLayers.OBJECTS)
        node = layer.add_node(1, SemanticNodeAttributes(np.zeros(3), semantic_label=4))

        assert node.attributes_as(SemanticNodeAttributes).semantic_label == 4
        with pytest.raises(TypeError, match="not AgentNodeAttributes"):
            node.attributes_as(AgentNodeAttributes)


class TestDynamicSceneGraph:
    """Test suite for DynamicSceneGraph."""

    def test_default_layers(self):
        dsg = DynamicSceneGraph()
        assert dsg.layer_ids == [2, 3, 4, 5]
        assert dsg.has_layer(DsgLayers.PLACES)

    def test_unknown_layer(self):
        dsg = DynamicSceneGraph(layer_ids=[DsgLayers.PLACES])
        with pytest.raises(KeyError, match="no layer 4"):
            dsg.get_layer(DsgLayers.ROOMS)
        with pytest.raises(KeyError):
            dsg.layer_mutex(DsgLayers.ROOMS)

    def test_layer_mutex_is_stable(self):
        dsg = DynamicSceneGraph()
        mutex = dsg.layer_mutex(DsgLayers.PLACES)

        assert mutex is dsg.layer_mutex(DsgLayers.PLACES)
        assert mutex is not dsg.layer_mutex(DsgLayers.OBJECTS)
        assert isinstance(mutex, type(threading.Lock()))

    def test_static_nodes(self):
        dsg = DynamicSceneGraph()
        node_id = NodeSymbol("p", 3).value
        dsg.add_node(DsgLayers.PLACES, node_id, NodeAttributes(np.ones(3)))

        assert dsg.get_node(node_id) is not None
        assert dsg.get_layer(DsgLayers.PLACES).has_node(node_id)
        assert dsg.remove_node(node_id)
        assert dsg.get_node(node_id) is None

    def test_agent_nodes(self):
        dsg = DynamicSceneGraph()
        first = dsg.add_agent_node("a", AgentNodeAttributes(position=np.zeros(3)))
        second = dsg.add_agent_node("a", AgentNodeAttributes(position=np.ones(3)))

        assert NodeSymbol.from_id(first.id) == NodeSymbol("a", 0)
        assert NodeSymbol.from_id(second.id) == NodeSymbol("a", 1)
        assert dsg.get_dynamic_node(second.id) is second
        assert dsg.get_node(second.id) is second
        assert dsg.num_nodes == 2

    def test_concurrent_agent_trajectories(self):
        dsg = DynamicSceneGraph()
        prefixes = "abcdefgh"
        poses_per_agent = 200
        errors = []
        start = threading.Barrier(2 * len(prefixes))

        def write(prefix):
            start.wait()
            for _ in range(poses_per_agent):
                dsg.add_agent_node(prefix, AgentNodeAttributes(position=np.zeros(3)))

        def read(prefix):
            start.wait()
            try:
                for i in range(poses_per_agent):
                    dsg.get_dynamic_node(NodeSymbol(prefix, i).value)
                    dsg.num_nodes
            except RuntimeError as e:
                errors.append(e)

        threads = [threading.Thread(target=write, args=(p,)) for p in prefixes]
        threads += [threading.Thread(target=read, args=(p,)) for p in prefixes]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert dsg.num_nodes == len(prefixes) * poses_per_agent
        for prefix in prefixes:
            last = NodeSymbol(prefix, poses_per_agent - 1).value
            assert dsg.get_dynamic_node(last) is not None

    def test_agent_zero_quaternion(self):
        with pytest.raises(ValueError, match="non-zero norm"):
            AgentNodeAttributes(position=np.zeros(3), world_R_body=np.zeros(4))

    def test_agent_pose(self):
        half = np.sqrt(0.5)
        attrs = AgentNodeAttributes(
            position=[1.0, 0.0, 0.0], world_R_body=[half, 0.0, 0.0, half]
        )

        pose = attrs.pose

        np.testing.assert_allclose(pose.translation, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(
            pose.transform_points(np.array([1.0, 0.0, 0.0])), [[1.0, 1.0, 0.0]], atol=1e-12
        )
