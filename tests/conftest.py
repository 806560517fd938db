import matplotlib
matplotlib.use('Agg')

import pytest
import germthresh as gt


@pytest.fixture
def hydrotime_model():
    return gt.ThresholdModel('Hydrotime')


@pytest.fixture
def hydrothermal_model():
    return gt.ThresholdModel('HydrothermalTime')


@pytest.fixture
def true_param():
    #ThetaH, PsiB50, SigmaPsiB
    return [40.0, -1.0, 0.3]


@pytest.fixture
def hydrothermal_param():
    #ThetaHT, PsiB50, SigmaPsiB, BaseTemperature
    return [800.0, -0.8, 0.25, 5.0]


@pytest.fixture
def hydrotime_design():
    return gt.create_grid({'WaterPotential': [0.0, -0.3, -0.6],
                           'Time': [24.0, 48.0, 96.0, 168.0]})


@pytest.fixture
def hydrothermal_design():
    return gt.create_grid({'WaterPotential': [0.0, -0.4],
                           'Temperature': [15.0, 25.0],
                           'Time': [24.0, 48.0, 96.0, 168.0]})


@pytest.fixture
def exact_data(hydrotime_model, hydrotime_design, true_param):
    #noiseless fractions with a large seed count so counts are near exact
    return hydrotime_model.sample(hydrotime_design, true_param,
                                  options={'NoiseLevel': 0.0, 'SeedNumber': 100000})


@pytest.fixture
def noisy_data(hydrotime_model, hydrotime_design, true_param):
    return hydrotime_model.sample(hydrotime_design, true_param,
                                  options={'NoiseLevel': 0.03, 'Seed': 7})


@pytest.fixture
def exact_hydrothermal_data(hydrothermal_model, hydrothermal_design, hydrothermal_param):
    return hydrothermal_model.sample(hydrothermal_design, hydrothermal_param,
                                     options={'NoiseLevel': 0.0, 'SeedNumber': 100000})
