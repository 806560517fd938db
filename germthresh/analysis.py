import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from germthresh.regression import probit_transform


def compare_estimates(true_param, fits):
    """Compares recovered parameter estimates against the parameters used to simulate the data.

    Args:
        true_param (array-like OR dictionary): The true parameter values, ordered as the fit
            columns, or a dictionary mapping parameter names to values.
        fits (dictionary of dataframes): Maps each fitting method's name to the dataframe returned
            by that method, one row per fitted dataset replicate.

    Returns:
        dataframe: A dataframe indexed by (Method, Parameter) with columns 'True', 'Mean', 'Bias',
        'RelativeBias', 'StdDev' and 'RMSE', computed over the replicate rows of each fit. 'StdDev'
        is NaN for a single replicate. 'RelativeBias' is the bias over the magnitude of the true
        value, so it keeps the sign of the bias for negative parameters.
    """
    row_list = []
    for method, fit_data in fits.items():
        estimates = fit_data['Estimate']
        param_names = list(estimates.columns)
        if isinstance(true_param, dict):
            true_values = [true_param[name] for name in param_names]
        else:
            true_values = list(true_param)
        if not len(true_values) == len(param_names):
            raise Exception('True parameter mismatch for method; '+method+', there were; '+str(len(true_values))
                            +', provided but; '+str(len(param_names))+' needed!')
        for name, true_value in zip(param_names, true_values):
            values = estimates[name].to_numpy(dtype=float)
            errors = values - true_value
            row_list.append({'Method':          method,
                             'Parameter':       name,
                             'True':            true_value,
                             'Mean':            np.mean(values),
                             'Bias':            np.mean(errors),
                             'RelativeBias':    np.mean(errors)/abs(true_value) if not true_value==0 else np.nan,
                             'StdDev':          np.std(values, ddof=1) if len(values)>1 else np.nan,
                             'RMSE':            np.sqrt(np.mean(errors**2))})
    comparison = pd.DataFrame(row_list).set_index(['Method','Parameter'])
    return comparison


def plot_fits(model, dataset, fits, ax=None):
    """Plots observed germination time courses against the curves of each fitted model.

    Each treatment (rows sharing every input but time) gets its own marker color; each fitting
    method gets its own line style. The first replicate row of every fit is plotted.

    Args:
        model (ThresholdModel): The threshold model that was fit.
        dataset (dataframe): The observed dataset, with model inputs and a 'Fraction' column.
        fits (dictionary of dataframes): Maps method names to fit dataframes.
        ax (matplotlib axes, optional): Axes to draw on, a new figure is created by default.

    Returns:
        figure: The Matplotlib figure holding the plot.
    """
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.get_figure()
    treatment_names = [name for name in model.input_name_list if not name=='Time']
    line_styles = ['-', '--', ':', '-.']
    color_cycle = plt.rcParams['axes.prop_cycle'].by_key()['color']
    time_grid = np.linspace(dataset['Time'].min(), dataset['Time'].max(), 200)
    time_grid = time_grid[time_grid > 0]

    for t, (treatment, group) in enumerate(dataset.groupby(treatment_names, sort=True)):
        color = color_cycle[t % len(color_cycle)]
        treatment = np.atleast_1d(treatment)
        label = ', '.join([name+'='+str(value) for name, value in zip(treatment_names, treatment)])
        ax.plot(group['Time'], group['Fraction'], 'o', color=color, label=label)
        curve_inputs = pd.DataFrame({'Time': time_grid})
        for name, value in zip(treatment_names, treatment):
            curve_inputs[name] = value
        for m, (method, fit_data) in enumerate(fits.items()):
            param = fit_data['Estimate'][model.param_name_list].iloc[0].to_numpy(dtype=float)
            prediction = model.predict(curve_inputs, param)
            ax.plot(time_grid, prediction['Prediction','Fraction'], line_styles[m % len(line_styles)], color=color,
                    label=method if t==0 else None)
    ax.set_xlabel('Time')
    ax.set_ylabel('Germination fraction')
    ax.set_ylim(-0.05, 1.05)
    ax.legend(fontsize='small')
    return fig


def plot_probit(model, dataset, param, ax=None):
    """Plots observed probits against the threshold covariate with the fitted probit line.

    On the probit scale the threshold model is the straight line (x - PsiB50)/SigmaPsiB in the
    threshold value x = psi - Theta/t (or psi - Theta/((T - Tb)*t)), so departures from the
    line show lack of fit. Rows with a fraction of 0 or 1 are not shown.

    Args:
        model (ThresholdModel): The threshold model that was fit.
        dataset (dataframe): The observed dataset, with model inputs and a 'Fraction' column.
        param (array-like, floats): The parameter vector defining the threshold covariate.
        ax (matplotlib axes, optional): Axes to draw on, a new figure is created by default.

    Returns:
        figure: The Matplotlib figure holding the plot.
    """
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.get_figure()
    param = np.asarray(param, dtype=float)
    psi_b50, sigma_psi_b = param[1], param[2]
    threshold = np.array([psi_b50 + sigma_psi_b*model.probit(row.to_numpy(dtype=float), param)
                          for index,row in dataset[model.input_name_list].iterrows()])
    probits = probit_transform(dataset['Fraction'])
    keep = np.isfinite(probits) & np.isfinite(threshold)
    ax.plot(threshold[keep], probits[keep], 'o', label='Observed')
    if keep.any():
        line_grid = np.linspace(threshold[keep].min(), threshold[keep].max(), 50)
        ax.plot(line_grid, (line_grid - psi_b50)/sigma_psi_b, '-', label='Fitted')
    ax.set_xlabel('Threshold water potential')
    ax.set_ylabel('Probit germination')
    ax.legend(fontsize='small')
    return fig
