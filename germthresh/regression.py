import copy as cp

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats as st

from germthresh.model import progress_bar

# The threshold models are linear on the probit scale once the time term is taken as a covariate:
#
#     probit(g) = b0 + b1*psi + b2*x,    x = 1/t  or  x = 1/((T - Tb)*t)
#
# so that SigmaPsiB = 1/b1, PsiB50 = -b0/b1 and Theta = -b2/b1. The base temperature of the
# hydrothermal model enters x and must be supplied, regression cannot estimate it.


def design_matrix(model, dataset, base_temperature=None):
    """Builds the regression covariates of the linearized threshold model.

    Args:
        model (ThresholdModel): The threshold model whose inputs the dataset holds.
        dataset (dataframe): A dataframe with a column for each model input.
        base_temperature (float, optional): The base temperature, required by the hydrothermal
            time model.

    Returns:
        dataframe: A dataframe with one column per name in model.coefficient_name_list.
    """
    missing = [name for name in model.input_name_list if not name in dataset.columns]
    if missing:
        raise Exception('Dataframe is missing required column(s); '+', '.join(missing)+'!')
    time = dataset['Time'].to_numpy(dtype=float)
    if model.model_type == 'HydrothermalTime':
        if base_temperature is None:
            raise Exception('The hydrothermal time model needs a BaseTemperature for regression fitting!')
        time_scale = (dataset['Temperature'].to_numpy(dtype=float) - base_temperature)*time
    else:
        time_scale = time
    if not (time_scale > 0).all():
        raise Exception('Regression covariates need positive times and temperatures above the base temperature!')

    covariates = pd.DataFrame(index=dataset.index)
    covariates[model.coefficient_name_list[0]] = 1.0
    covariates[model.coefficient_name_list[1]] = dataset['WaterPotential'].to_numpy(dtype=float)
    covariates[model.coefficient_name_list[2]] = 1/time_scale
    return covariates


def probit_transform(fractions, options={}):
    """Transforms germination fractions to the probit scale.

    Fractions of exactly 0 or 1 have an infinite probit; depending on the "Boundary" option they
    become NaN (to be dropped by the caller) or are clipped to [ClipTolerance, 1-ClipTolerance]
    before transforming.

    Args:
        fractions (array-like, floats): Germination fractions in [0, 1].
        options (dict, optional): "Boundary" ("Drop" or "Clip", default "Drop") and
            "ClipTolerance" (float, default 0.005).

    Returns:
        array: The probit of each fraction.
    """
    default_options = \
      { 'Boundary':         ['Drop',    lambda x: isinstance(x,str) and (x=='Drop' or x=='Clip')],
        'ClipTolerance':    [0.005,     lambda x: isinstance(x,float) and 0<x and x<0.5]}
    options=cp.deepcopy(options)
    for key in options.keys():
        if not key in default_options.keys():
            raise Exception('Invalid option key; '+key+'!')
        elif not default_options[key][1](options[key]):
            raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
    for key in default_options.keys():
        if not key in options.keys() :
            options[key] = default_options[key][0]

    fractions = np.asarray(fractions, dtype=float)
    if ((fractions < 0) | (fractions > 1)).any():
        raise Exception('Germination fractions must lie in [0, 1]!')
    if options['Boundary']=='Clip':
        tolerance = options['ClipTolerance']
        return st.norm.ppf(np.clip(fractions, tolerance, 1-tolerance))
    probits = st.norm.ppf(fractions)
    probits[~np.isfinite(probits)] = np.nan
    return probits


def coefficients_to_params(model, coefficients, covariance=None, base_temperature=None):
    """Back-transforms linearized probit coefficients to the biological parameters.

    With a coefficient covariance matrix the parameter covariance is propagated with the delta
    method, cov(p) = G cov(b) G^T where G is the jacobian of the map. For the hydrothermal model
    the passed base temperature is appended as a parameter with zero variance.

    Args:
        model (ThresholdModel): The threshold model the coefficients belong to.
        coefficients (array-like, floats): The coefficients (b0, b1, b2).
        covariance (array-like, floats, optional): The 3 by 3 covariance of the coefficients.
        base_temperature (float, optional): The base temperature used to build the covariates,
            required by the hydrothermal time model.

    Returns:
        array OR tuple: The parameter vector ordered as model.param_name_list, or, if a covariance
        was passed, the parameter vector and its covariance matrix.
    """
    [intercept, slope, time_coefficient] = np.asarray(coefficients, dtype=float)
    if slope == 0:
        raise Exception('The water potential coefficient is zero, the threshold distribution is undefined!')
    param = [-time_coefficient/slope, -intercept/slope, 1/slope]
    jacobian = np.array([[0.0,          time_coefficient/slope**2,  -1/slope],
                         [-1/slope,     intercept/slope**2,         0.0],
                         [0.0,          -1/slope**2,                0.0]])
    if model.model_type == 'HydrothermalTime':
        if base_temperature is None:
            raise Exception('The hydrothermal time model needs a BaseTemperature for back-transformation!')
        param.append(base_temperature)
        jacobian = np.vstack([jacobian, np.zeros(3)])
    param = np.array(param)
    if covariance is None:
        return param
    param_covariance = jacobian @ np.asarray(covariance, dtype=float) @ jacobian.T
    return param, param_covariance


def params_to_coefficients(model, param):
    """Maps biological parameters to the coefficients of the linearized probit regression.

    Args:
        model (ThresholdModel): The threshold model the parameters belong to.
        param (array-like, floats): The parameter vector ordered as model.param_name_list.

    Returns:
        array: The coefficients (b0, b1, b2).
    """
    if not len(param) == model.num_param:
        raise Exception('Parameter mismatch, there were; '+str(len(param))+', provided but; '+str(model.num_param)+' needed!')
    theta, psi_b50, sigma_psi_b = param[0], param[1], param[2]
    return np.array([-psi_b50/sigma_psi_b, 1/sigma_psi_b, -theta/sigma_psi_b])


def glm_fit(model, datasets, options={}):
    """Fits the threshold model as a binomial GLM with a probit link.

    The germinated and non-germinated seed counts of each row are regressed on the linearized
    covariates with statsmodels' GLM, and the coefficients are back-transformed to the
    biological parameters.

    Args:
        model (ThresholdModel): The threshold model to fit.
        datasets (dataframe OR list of dataframes): Dataset(s) holding the model inputs and the
            'Germinated' and 'Total' seed counts.
        options (dict, optional): A dictionary of user-defined options, possible key-value pairs
            include:

            "BaseTemperature" --
            Purpose: The known base temperature, required by the hydrothermal time model,
            Type: float or integer,
            Default Value: None

            "Confidence" --
            Purpose: Determines if delta-method confidence intervals are returned,
            Type: string,
            Default Value: "None",
            Possible Values: "None" or "Intervals"

            "ConfidenceLevel" --
            Type: float,
            Default Value: 0.95

            "ReturnCoefficients" --
            Purpose: Additionally return the fitted regression coefficients,
            Type: bool,
            Default Value: False

            "Verbose" --
            Purpose: Prints a progress bar,
            Type: bool,
            Default Value: False

    Returns:
        dataframe OR tuple: A parameter dataframe laid out as in ThresholdModel.fit(), and, if
        requested, a dataframe of the coefficients with one row per dataset.
    """
    default_options = \
      { 'BaseTemperature':      [None,      lambda x: x is None or (isinstance(x,(int,float)) and not isinstance(x,bool))],
        'Confidence':           ['None',    lambda x: isinstance(x,str) and (x=='None' or x=='Intervals')],
        'ConfidenceLevel':      [0.95,      lambda x: isinstance(x,float) and 0<x and x<1],
        'ReturnCoefficients':   [False,     lambda x: isinstance(x,bool)],
        'Verbose':              [False,     lambda x: isinstance(x,bool)]}
    options=cp.deepcopy(options)
    for key in options.keys():
        if not key in default_options.keys():
            raise Exception('Invalid option key; '+key+'!')
        elif not default_options[key][1](options[key]):
            raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
    for key in default_options.keys():
        if not key in options.keys() :
            options[key] = default_options[key][0]

    def fit_dataset(dataset):
        missing = [name for name in ['Germinated','Total'] if not name in dataset.columns]
        if missing:
            raise Exception('Dataframe is missing required column(s); '+', '.join(missing)+'!')
        covariates = design_matrix(model, dataset, options['BaseTemperature'])
        germinated = dataset['Germinated'].to_numpy(dtype=float)
        counts = np.column_stack([germinated, dataset['Total'].to_numpy(dtype=float) - germinated])
        probit_family = sm.families.Binomial(link=sm.families.links.Probit())
        result = sm.GLM(counts, covariates, family=probit_family).fit()
        return result.params.to_numpy(), result.cov_params().to_numpy()

    return _regression_fit(model, datasets, fit_dataset, options, 'GLM Fitting:')


def linear_fit(model, datasets, options={}):
    """Fits the threshold model by ordinary least squares on probit-transformed fractions.

    The observed fractions are probit transformed, see probit_transform(), regressed on the
    linearized covariates with statsmodels' OLS, and the coefficients are back-transformed to
    the biological parameters.

    Args:
        model (ThresholdModel): The threshold model to fit.
        datasets (dataframe OR list of dataframes): Dataset(s) holding the model inputs and a
            'Fraction' column of observed germination fractions.
        options (dict, optional): The options of glm_fit() plus:

            "Boundary" --
            Purpose: How fractions of 0 or 1 are handled,
            Type: string,
            Default Value: "Drop",
            Possible Values: "Drop" = rows are removed, "Clip" = fractions are clipped to
            [ClipTolerance, 1-ClipTolerance]

            "ClipTolerance" --
            Type: float,
            Default Value: 0.005

    Returns:
        dataframe OR tuple: As for glm_fit().
    """
    default_options = \
      { 'BaseTemperature':      [None,      lambda x: x is None or (isinstance(x,(int,float)) and not isinstance(x,bool))],
        'Boundary':             ['Drop',    lambda x: isinstance(x,str) and (x=='Drop' or x=='Clip')],
        'ClipTolerance':        [0.005,     lambda x: isinstance(x,float) and 0<x and x<0.5],
        'Confidence':           ['None',    lambda x: isinstance(x,str) and (x=='None' or x=='Intervals')],
        'ConfidenceLevel':      [0.95,      lambda x: isinstance(x,float) and 0<x and x<1],
        'ReturnCoefficients':   [False,     lambda x: isinstance(x,bool)],
        'Verbose':              [False,     lambda x: isinstance(x,bool)]}
    options=cp.deepcopy(options)
    for key in options.keys():
        if not key in default_options.keys():
            raise Exception('Invalid option key; '+key+'!')
        elif not default_options[key][1](options[key]):
            raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
    for key in default_options.keys():
        if not key in options.keys() :
            options[key] = default_options[key][0]

    def fit_dataset(dataset):
        if not 'Fraction' in dataset.columns:
            raise Exception('Dataframe is missing required column(s); Fraction!')
        covariates = design_matrix(model, dataset, options['BaseTemperature'])
        probits = probit_transform(dataset['Fraction'],
                                   {'Boundary':options['Boundary'], 'ClipTolerance':options['ClipTolerance']})
        keep = np.isfinite(probits)
        if keep.sum() <= len(model.coefficient_name_list):
            raise Exception('Too few observations with fractions strictly between 0 and 1 for a linear fit!')
        result = sm.OLS(probits[keep], covariates[keep]).fit()
        return result.params.to_numpy(), result.cov_params().to_numpy()

    return _regression_fit(model, datasets, fit_dataset, options, 'Linear Fitting:')


def _regression_fit(model, datasets, fit_dataset, options, prefix):
    """Runs a regression over one or several datasets and assembles the output dataframes."""
    if isinstance(datasets, pd.DataFrame):
        replicat_datasets = [datasets]
    else:
        replicat_datasets = datasets
    num_datasets = len(replicat_datasets)
    interval_bool = options['Confidence']=='Intervals'
    stddev_multiplier = st.norm.ppf(0.5 + options['ConfidenceLevel']/2)

    if options['Verbose']:
        progress_counter=0
        progress_bar(progress_counter, num_datasets, prefix = prefix)
    coefficient_list, param_list, bound_list = [], [], []
    for dataset in replicat_datasets:
        coefficients, coefficient_covariance = fit_dataset(dataset)
        param, param_covariance = coefficients_to_params(model, coefficients, coefficient_covariance,
                                                         options['BaseTemperature'])
        coefficient_list.append(coefficients)
        param_list.append(param)
        if interval_bool:
            stderr = np.sqrt(np.abs(np.diag(param_covariance)))
            bound_list.append(np.concatenate([param - stddev_multiplier*stderr, param + stddev_multiplier*stderr]))
        if options['Verbose']:
            progress_counter += 1
            progress_bar(progress_counter, num_datasets, prefix = prefix)

    if interval_bool:
        column_index = pd.MultiIndex.from_product([['Estimate','Lower','Upper'],model.param_name_list],names=['Value', 'Parameter'])
        param_output_matrix = np.concatenate([np.stack(param_list), np.stack(bound_list)], axis=1)
    else:
        column_index = pd.MultiIndex.from_product([['Estimate'],model.param_name_list],names=['Value', 'Parameter'])
        param_output_matrix = np.stack(param_list)
    param_data = pd.DataFrame(param_output_matrix, columns=column_index)

    if options['ReturnCoefficients']:
        coefficient_data = pd.DataFrame(np.stack(coefficient_list), columns=model.coefficient_name_list)
        return param_data, coefficient_data
    return param_data
