import pytest
import numpy as np
import pandas as pd
from scipy import stats as st
import germthresh as gt


def test_model_instantiation(hydrotime_model):
    assert hydrotime_model.num_input == 2
    assert hydrotime_model.num_param == 3
    assert hydrotime_model.input_name_list == ['WaterPotential','Time']
    assert hydrotime_model.param_name_list == ['ThetaH','PsiB50','SigmaPsiB']


def test_hydrothermal_instantiation(hydrothermal_model):
    assert hydrothermal_model.num_input == 3
    assert hydrothermal_model.param_name_list[-1] == 'BaseTemperature'


def test_mx_symbolics(true_param):
    model = gt.ThresholdModel(options={'ScalarSymbolics': False})
    assert model.fraction([0.0, 40.0], true_param) == pytest.approx(0.5)


def test_unknown_model_type():
    with pytest.raises(Exception):
        gt.ThresholdModel('Thermaltime')


def test_invalid_option():
    with pytest.raises(Exception):
        gt.ThresholdModel(options={'Symbolics': True})
    with pytest.raises(Exception):
        gt.ThresholdModel(options={'ScalarSymbolics': 'yes'})


def test_median_germination(hydrotime_model, true_param):
    #psi - ThetaH/t equals PsiB50 so half the population has germinated
    assert hydrotime_model.probit([0.0, 40.0], true_param) == pytest.approx(0.0, abs=1e-12)
    assert hydrotime_model.fraction([0.0, 40.0], true_param) == pytest.approx(0.5)


def test_probit_value(hydrotime_model, true_param):
    expected = (-0.3 - 40.0/100.0 + 1.0)/0.3
    assert hydrotime_model.probit([-0.3, 100.0], true_param) == pytest.approx(expected)


def test_no_germination_at_time_zero(hydrotime_model, true_param):
    assert hydrotime_model.fraction([0.0, 0.0], true_param) == 0.0
    assert hydrotime_model.probit([0.0, 0.0], true_param) == -np.inf


def test_no_germination_below_base_temperature(hydrothermal_model, hydrothermal_param):
    assert hydrothermal_model.fraction([0.0, 4.0, 100.0], hydrothermal_param) == 0.0
    assert hydrothermal_model.fraction([0.0, 25.0, 100.0], hydrothermal_param) > 0.0


def test_fraction_monotone(hydrotime_model, true_param):
    times = [10.0, 20.0, 50.0, 100.0, 500.0]
    by_time = [hydrotime_model.fraction([-0.3, t], true_param) for t in times]
    assert np.all(np.diff(by_time) >= 0)
    potentials = [-1.2, -0.8, -0.4, 0.0]
    by_potential = [hydrotime_model.fraction([p, 100.0], true_param) for p in potentials]
    assert np.all(np.diff(by_potential) >= 0)


def test_create_grid():
    design = gt.create_grid({'WaterPotential': [0.0, -0.5], 'Time': [10.0, 20.0, 30.0]})
    assert design.shape == (6, 2)
    assert list(design['Time'][:3]) == [10.0, 20.0, 30.0]
    assert (design['WaterPotential'][:3] == 0.0).all()


def test_predict(hydrotime_model, hydrotime_design, true_param):
    prediction = hydrotime_model.predict(hydrotime_design, true_param)
    assert ('Prediction','Fraction') in prediction.columns
    assert ('Inputs','Time') in prediction.columns
    expected = hydrotime_model.fraction([0.0, 48.0], true_param)
    row = (prediction['Inputs','WaterPotential']==0.0) & (prediction['Inputs','Time']==48.0)
    assert prediction.loc[row, ('Prediction','Fraction')].item() == pytest.approx(expected)


def test_predict_intervals(hydrotime_model, hydrotime_design, true_param):
    covariance = np.diag([4.0, 0.01, 0.001])
    prediction = hydrotime_model.predict(hydrotime_design, true_param, covariance,
                                         options={'PredictionInterval': True, 'Sensitivity': True})
    fraction = prediction['Prediction','Fraction']
    assert (prediction['Prediction','Lower'] <= fraction).all()
    assert (prediction['Prediction','Upper'] >= fraction).all()
    assert (prediction['Prediction','Lower'] >= 0).all()
    assert (prediction['Prediction','Upper'] <= 1).all()
    #germination speeds up as the hydrotime constant decreases
    assert (prediction['Sensitivity','ThetaH'] <= 0).all()


def test_predict_intervals_need_covariance(hydrotime_model, hydrotime_design, true_param):
    with pytest.raises(Exception):
        hydrotime_model.predict(hydrotime_design, true_param, options={'PredictionInterval': True})


def test_sample_noiseless(hydrotime_model, hydrotime_design, true_param):
    data = hydrotime_model.sample(hydrotime_design, true_param, options={'NoiseLevel': 0.0})
    assert list(data.columns) == ['WaterPotential','Time','Germinated','Total','Fraction']
    for index,row in data.iterrows():
        expected = hydrotime_model.fraction([row['WaterPotential'], row['Time']], true_param)
        assert row['Fraction'] == pytest.approx(expected)
        assert row['Germinated'] == round(expected*100)


def test_sample_replicates(hydrotime_model, hydrotime_design, true_param):
    datasets = hydrotime_model.sample(hydrotime_design, true_param, design_replicates=3, options={'Seed': 1})
    assert len(datasets) == 3
    assert not np.allclose(datasets[0]['Fraction'], datasets[1]['Fraction'])
    for data in datasets:
        assert data['Fraction'].between(0, 1).all()


def test_sample_design_replicates_column(hydrotime_model, true_param):
    design = pd.DataFrame({'WaterPotential': [0.0, -0.3], 'Time': [48.0, 96.0], 'Replicates': [2, 3]})
    data = hydrotime_model.sample(design, true_param)
    assert len(data.index) == 5


def test_sample_binomial_reproducible(hydrotime_model, hydrotime_design, true_param):
    options = {'Noise': 'Binomial', 'SeedNumber': 50, 'Seed': 11}
    first = hydrotime_model.sample(hydrotime_design, true_param, options=options)
    second = hydrotime_model.sample(hydrotime_design, true_param, options=options)
    assert (first['Germinated'] == second['Germinated']).all()
    assert (first['Germinated'] <= 50).all()
    assert first['Fraction'].to_numpy() == pytest.approx(first['Germinated'].to_numpy()/50)


def test_sample_seed_population_cumulative(hydrothermal_model, hydrothermal_design, hydrothermal_param):
    data = hydrothermal_model.sample(hydrothermal_design, hydrothermal_param,
                                     options={'Noise': 'Seeds', 'SeedNumber': 200, 'Seed': 3})
    for treatment, group in data.groupby(['WaterPotential','Temperature']):
        counts = group.sort_values('Time')['Germinated'].to_numpy()
        assert np.all(np.diff(counts) >= 0)


def test_sample_parameter_mismatch(hydrotime_model, hydrotime_design):
    with pytest.raises(Exception):
        hydrotime_model.sample(hydrotime_design, [40.0, -1.0])


def test_sample_missing_column(hydrotime_model, true_param):
    with pytest.raises(Exception):
        hydrotime_model.sample(pd.DataFrame({'Time': [10.0]}), true_param)


def test_fit_recovers_parameters(hydrotime_model, exact_data, true_param):
    fit_info = hydrotime_model.fit(exact_data, start_param=[30.0, -0.8, 0.25], options={'Verbose': False})
    estimate = fit_info['Estimate'].iloc[0].to_numpy()
    assert estimate == pytest.approx(true_param, rel=1e-3)


def test_fit_probit_distance(hydrotime_model, exact_data, true_param):
    fit_info = hydrotime_model.fit(exact_data, start_param=[30.0, -0.8, 0.25],
                                   options={'Distance': 'Probit', 'Verbose': False})
    estimate = fit_info['Estimate'].iloc[0].to_numpy()
    assert estimate == pytest.approx(true_param, rel=1e-3)


def test_fit_grid_search_start(hydrotime_model, exact_data, true_param):
    options = {'InitParamBounds': [(10.0, 60.0), (-1.5, -0.5), (0.1, 0.5)],
               'InitSearchNumber': 5,
               'Verbose': False}
    fit_info = hydrotime_model.fit(exact_data, options=options)
    estimate = fit_info['Estimate'].iloc[0].to_numpy()
    assert estimate == pytest.approx(true_param, rel=1e-3)


def test_fit_intervals(hydrotime_model, noisy_data):
    fit_info = hydrotime_model.fit(noisy_data, start_param=[30.0, -0.8, 0.25],
                                   options={'Confidence': 'Intervals', 'Verbose': False})
    assert list(fit_info.columns.levels[0]) == ['Estimate','Lower','Upper']
    assert (fit_info['Lower'] <= fit_info['Estimate']).all().all()
    assert (fit_info['Estimate'] <= fit_info['Upper']).all().all()
    assert (fit_info['Estimate','SigmaPsiB'] > 0).all()


def test_fit_multiple_datasets(hydrotime_model, hydrotime_design, true_param):
    datasets = hydrotime_model.sample(hydrotime_design, true_param, design_replicates=2,
                                      options={'NoiseLevel': 0.02, 'Seed': 5})
    fit_info = hydrotime_model.fit(datasets, start_param=[30.0, -0.8, 0.25], options={'Verbose': False})
    assert len(fit_info.index) == 2
    assert fit_info['Estimate','PsiB50'].to_numpy() == pytest.approx([-1.0, -1.0], abs=0.2)


def test_fit_hydrothermal(hydrothermal_model, exact_hydrothermal_data, hydrothermal_param):
    fit_info = hydrothermal_model.fit(exact_hydrothermal_data, start_param=[700.0, -0.7, 0.3, 4.0],
                                      options={'Verbose': False})
    estimate = fit_info['Estimate'].iloc[0].to_numpy()
    assert estimate == pytest.approx(hydrothermal_param, rel=1e-2)
    assert estimate[3] < exact_hydrothermal_data['Temperature'].min()


def test_fit_rejects_nonpositive_time(hydrotime_model, true_param):
    data = pd.DataFrame({'WaterPotential': [0.0, 0.0, 0.0, 0.0],
                         'Time': [0.0, 24.0, 48.0, 96.0],
                         'Fraction': [0.0, 0.1, 0.6, 0.9]})
    with pytest.raises(Exception):
        hydrotime_model.fit(data, options={'Verbose': False})


def test_fit_invalid_option(hydrotime_model, exact_data):
    with pytest.raises(Exception):
        hydrotime_model.fit(exact_data, options={'Distance': 'Euclid'})


def test_probit_matches_inverse_fraction(hydrotime_model, hydrothermal_model, true_param, hydrothermal_param):
    for inputs in [[0.0, 30.0], [-0.3, 48.0], [-0.6, 168.0], [0.0, 168.0]]:
        probit = hydrotime_model.probit(inputs, true_param)
        assert st.norm.ppf(hydrotime_model.fraction(inputs, true_param)) == pytest.approx(probit, abs=1e-8)
    for inputs in [[0.0, 15.0, 48.0], [-0.4, 25.0, 96.0], [-0.2, 10.0, 168.0]]:
        probit = hydrothermal_model.probit(inputs, hydrothermal_param)
        assert st.norm.ppf(hydrothermal_model.fraction(inputs, hydrothermal_param)) == pytest.approx(probit, abs=1e-8)


def test_sample_seed_population_replicates_independent(hydrotime_model, true_param):
    design = pd.DataFrame({'WaterPotential': [-0.3, -0.3], 'Time': [48.0, 96.0], 'Replicates': [3, 3]})
    data = hydrotime_model.sample(design, true_param, options={'Noise': 'Seeds', 'SeedNumber': 1000, 'Seed': 1})
    early = data.loc[data['Time']==48.0, 'Germinated'].to_numpy()
    late = data.loc[data['Time']==96.0, 'Germinated'].to_numpy()
    #each replicate seed lot is drawn separately
    assert len(set(early)) > 1
    #counts accumulate within each seed lot
    assert np.all(early <= late)


def test_fit_hydrothermal_probit_distance_mx(exact_hydrothermal_data, hydrothermal_param):
    model = gt.ThresholdModel('HydrothermalTime', options={'ScalarSymbolics': False})
    fit_info = model.fit(exact_hydrothermal_data, start_param=[700.0, -0.7, 0.3, 4.0],
                         options={'Distance': 'Probit', 'Verbose': False})
    estimate = fit_info['Estimate'].iloc[0].to_numpy()
    assert estimate == pytest.approx(hydrothermal_param, rel=1e-2)
    assert estimate[3] < exact_hydrothermal_data['Temperature'].min()
