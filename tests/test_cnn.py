# test_cnn.py
import pytest
import numpy as np
import torch
from cnn import CNN
from config import DEFAULT_CFG, validate_cfg
from image import Image, IMAGE_SIZE, NUM_CLASSES
from weight_set import WeightSet, TopologyMismatchError, INIT_VALUE

@pytest.fixture
def model():
    return CNN({'verbose': False})

@pytest.fixture
def images():
    torch.manual_seed(1)
    return [Image(torch.rand(IMAGE_SIZE, IMAGE_SIZE), label=i % NUM_CLASSES) for i in range(6)]

def test_initialization(model):
    assert isinstance(model.weights, WeightSet)
    assert model.weights.equal(WeightSet(INIT_VALUE)), "CNN should start from the constant initialisation."
    assert model.cfg == {**DEFAULT_CFG, 'verbose': False}

def test_config_overrides():
    model = CNN({'init_value': 0.5, 'epochs': 3, 'verbose': False})
    assert model.cfg['epochs'] == 3
    assert torch.all(model.weights.fc1 == 0.5)

def test_validate_config():
    with pytest.raises(TypeError):
        CNN(cfg=[('epochs', 1)])
    with pytest.raises(ValueError):
        CNN({'epochz': 1})
    with pytest.raises(ValueError):
        CNN({'batch_size': 0})
    with pytest.raises(TypeError):
        CNN({'batch_size': 2.})
    with pytest.raises(TypeError):
        CNN({'learning_rate': None})
    with pytest.raises(TypeError):
        CNN({'verbose': 1})
    validate_cfg(DEFAULT_CFG)

def test_predict_reports(model, capsys):
    image = Image(np.zeros((IMAGE_SIZE, IMAGE_SIZE)), label=2)
    assert model.predict(image) == 0, "All-zero scores should predict the first class."
    assert 'Predicted label: 0, Actual label: 2' in capsys.readouterr().out

def test_train_uses_config(model, images):
    other = CNN({'verbose': False, 'learning_rate': 1e-7, 'epochs': 1, 'batch_size': 2})
    model.train(images, epochs=1, learning_rate=1e-7, batch_size=2, rng=np.random.default_rng(3))
    other.train(images, rng=np.random.default_rng(3))
    assert model.weights.equal(other.weights), "Config defaults and explicit arguments should train identically."
    assert not model.weights.equal(WeightSet()), "Training did not change the weights."

def test_verbose_train_profiles(images, capsys):
    model = CNN({'verbose': True, 'epochs': 1})
    model.train(images[:2], learning_rate=0.)
    out = capsys.readouterr().out
    assert 'Training on 2 images for 1 epochs' in out
    assert 'rss:' in out

def test_save_and_load_weights(model, images, tmp_path):
    model.train(images, epochs=1, learning_rate=1e-7, rng=np.random.default_rng(0))
    path = str(tmp_path / 'cnn.bin')
    assert model.save_weights(path)

    restored = CNN({'verbose': False})
    assert restored.load_weights(path)
    assert restored.weights.equal(model.weights), "Restored weights differ from the saved ones."
    for image in images:
        assert restored.predict(image) == model.predict(image)

def test_load_failure_keeps_training_possible(model, images, tmp_path):
    with pytest.warns(UserWarning):
        assert model.load_weights(str(tmp_path / 'nope.bin')) is False
    assert model.weights.equal(WeightSet())
    model.train(images[:2], epochs=1, learning_rate=1e-7)

def test_load_foreign_topology(model, tmp_path):
    path = tmp_path / 'short.bin'
    path.write_bytes(np.array([3], dtype=np.uint64).tobytes() + np.zeros(3, dtype=np.float32).tobytes())
    with pytest.raises(TopologyMismatchError):
        model.load_weights(str(path))
    assert model.weights.equal(WeightSet())
