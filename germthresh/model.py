import os as os
import sys as sys
import copy as cp
import itertools as it
from contextlib import contextmanager

import casadi as cs
import numpy as np
import pandas as pd
from scipy import stats as st


class ThresholdModel:
    """ The ThresholdModel class implements the population threshold model of seed germination.

    This class encodes casadi symbolic structures connecting the germination covariates (water
    potential, time and optionally temperature) and the biological parameters of the seed
    population to the probit-scale germination value. The cumulative germination fraction is the
    standard normal CDF of the probit.

    The default model is the hydrotime model of Bradford (1990):

        probit(g) = (psi - ThetaH/t - PsiB50)/SigmaPsiB

    The hydrothermal time model adds a base temperature below which no seed germinates:

        probit(g) = (psi - ThetaHT/((T - Tb)*t) - PsiB50)/SigmaPsiB

    Upon construction, the class populates casadi function attributes for computing the probit,
    the germination fraction and the fraction's parametric sensitivity. These are used to
    implement the public user-callable functions; predict(), sample() and fit().

    Attributes:
        model_type (string): The name of the threshold model, one of the keys of model_dict.
        symbolics_boolean (bool): A boolean indicating if Casadi SX (True) or MX (false) symbolics
            should be used.
        num_input (integer): The number of covariates accepted by the model.
        num_param (integer): The number of biological parameters accepted by the model.
        input_name_list (list of strings): The covariate names, in the order expected by the
            casadi functions.
        param_name_list (list of strings): The parameter names, in the order expected by the
            casadi functions.
        coefficient_name_list (list of strings): The names of the coefficients of the linearized
            probit regression, see the regression module.
        default_param (list of floats): Generic starting values used when fitting.
        probit_func: A casadi function computing the probit at the passed inputs and parameters.

            Call Structure: ThresholdModel.probit_func(inputs, parameters)
        fraction_func: A casadi function computing the cumulative germination fraction.

            Call Structure: ThresholdModel.fraction_func(inputs, parameters)
        sensitivity_func: A casadi function computing the gradient of the germination fraction
            with respect to the parameters.

            Call Structure: ThresholdModel.sensitivity_func(inputs, parameters)
    """

    model_dict = {'Hydrotime':          {'Inputs':       ['WaterPotential','Time'],
                                         'Parameters':   ['ThetaH','PsiB50','SigmaPsiB'],
                                         'Coefficients': ['Intercept','WaterPotential','InverseTime'],
                                         'Start':        [1.0, -0.5, 0.2]},
                  'HydrothermalTime':   {'Inputs':       ['WaterPotential','Temperature','Time'],
                                         'Parameters':   ['ThetaHT','PsiB50','SigmaPsiB','BaseTemperature'],
                                         'Coefficients': ['Intercept','WaterPotential','InverseThermalTime'],
                                         'Start':        [50.0, -0.5, 0.2, 0.0]}}

    def __init__(self, model_type='Hydrotime', options={}):
        """ The class constructor for the ThresholdModel class.

        Args:
            model_type (string, optional): The threshold model to build, either "Hydrotime" or
                "HydrothermalTime". Defaults to "Hydrotime".
            options (dict, optional): A dictionary of user-defined options, possible key-value pairs
                include:

                "ScalarSymbolics" --
                Purpose: Determines whether SX or MX Casadi symbolics are used within the model,
                True implies scalar symbolics via SX.,
                Type: boolean,
                Default Value: True,
                Possible Values: True or False
        """
        default_options = \
          { 'ScalarSymbolics':       [True,       lambda x: isinstance(x,bool) ]}
        options=cp.deepcopy(options)
        for key in options.keys():
            if not key in default_options.keys():
                raise Exception('Invalid option key; '+key+'!')
            elif not default_options[key][1](options[key]):
                raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
        for key in default_options.keys():
            if not key in options.keys() :
                options[key] = default_options[key][0]

        if not model_type in self.model_dict.keys():
            raise Exception('Unknown threshold model; '+str(model_type)+', must be one of; '
                            +', '.join(self.model_dict.keys())+'!')

        self.model_type = model_type
        self.symbolics_boolean = options['ScalarSymbolics']
        self.input_name_list = list(self.model_dict[model_type]['Inputs'])
        self.param_name_list = list(self.model_dict[model_type]['Parameters'])
        self.coefficient_name_list = list(self.model_dict[model_type]['Coefficients'])
        self.default_param = list(self.model_dict[model_type]['Start'])
        self.num_input = len(self.input_name_list)
        self.num_param = len(self.param_name_list)

        [self.probit_func, self.fraction_func, self.sensitivity_func] = self.__get_model_functions()

# --------------- Public (user-callable) functions -------------------------------------------------

    def probit(self, inputs, param):
        """ Evaluates the probit-scale germination value at a single input vector.

        Args:
            inputs (array-like, floats): The covariate values, ordered as in input_name_list.
            param (array-like, floats): The parameter values, ordered as in param_name_list.

        Returns:
            float: The probit of the cumulative germination fraction, -inf where no seed can
            have germinated.
        """
        return self.probit_func(np.asarray(inputs, dtype=float), np.asarray(param, dtype=float)).full().item()

    def fraction(self, inputs, param):
        """ Evaluates the cumulative germination fraction at a single input vector.

        Args:
            inputs (array-like, floats): The covariate values, ordered as in input_name_list.
            param (array-like, floats): The parameter values, ordered as in param_name_list.

        Returns:
            float: The germination fraction, in [0, 1].
        """
        return self.fraction_func(np.asarray(inputs, dtype=float), np.asarray(param, dtype=float)).full().item()

    def predict(self, input_struct, param, covariance_matrix=None, options={}):
        """ A function for generating germination predictions from the threshold model.

        Prediction information includes the probit and the cumulative germination fraction at each
        input row, approximate prediction intervals for the fraction under parameter uncertainty,
        and the parametric sensitivity of the fraction.

        Args:
            input_struct (dataframe): A dataframe with a column for each model input, specifying
                the conditions at which predictions are desired.
            param (array-like, floats): The parameter vector at which the predictions are made.
            covariance_matrix (array-like, floats, optional): A symetric matrix specifying the
                parameter covariance, required if prediction intervals are requested.
            options (dictionary, optional): A dictionary of user-defined options, possible key-value
                pairs include:

                "PredictionInterval" --
                Purpose: A boolean to indicate if delta-method prediction intervals are returned.
                Type: bool
                Default Value: False
                Possible Values: True or False

                "Sensitivity" --
                Purpose: A boolean to indicate if the fraction sensitivities are returned.
                Type: bool
                Default Value: False
                Possible Values: True or False

                "ConfidenceLevel" --
                Purpose: A float specifying the confidence level of the prediction intervals.
                Type: float
                Default Value: 0.95
                Possible Values: <1, >0

        Returns:
            dataframe: A dataframe with a two level column index; the 'Inputs' block repeats the
            passed conditions, the 'Prediction' block holds 'Probit', 'Fraction' and, if requested,
            'Lower' and 'Upper', and the optional 'Sensitivity' block has a column per parameter.
        """
        default_options = { 'PredictionInterval':       [False,     lambda x: isinstance(x,bool)],
                            'Sensitivity':              [False,     lambda x: isinstance(x,bool)],
                            'ConfidenceLevel':          [0.95,      lambda x: isinstance(x,float) and 0<x and x<1]}
        options=cp.deepcopy(options)
        for key in options.keys():
            if not key in default_options.keys():
                raise Exception('Invalid option key; '+key+'!')
            elif not default_options[key][1](options[key]):
                raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
        for key in default_options.keys():
            if not key in options.keys() :
                options[key] = default_options[key][0]
        if not len(param) == self.num_param:
            raise Exception('Parameter mismatch, there were; '+str(len(param))+', provided but; '+str(self.num_param)+' needed!')
        if options['PredictionInterval']:
            if covariance_matrix is None:
                raise Exception('Prediction intervals cannot be computed without parameter uncertainty specified by a covariance matrix!')
            covariance_matrix = np.asarray(covariance_matrix, dtype=float)
            if not covariance_matrix.shape == (self.num_param, self.num_param):
                raise Exception('Covariance matrix must be '+str(self.num_param)+' by '+str(self.num_param)+'!')
        self.__check_columns(input_struct, self.input_name_list)

        param = np.asarray(param, dtype=float)
        stddev_multiplier = st.norm.ppf(0.5 + options['ConfidenceLevel']/2)
        probit_list, fraction_list = [], []
        lower_list, upper_list = [], []
        sensitivity_lists = [[] for p in range(self.num_param)]
        for index,row in input_struct.iterrows():
            input_vec = row[self.input_name_list].to_numpy(dtype=float)
            probit_list.append(self.probit_func(input_vec, param).full().item())
            fraction = self.fraction_func(input_vec, param).full().item()
            fraction_list.append(fraction)
            if options['PredictionInterval'] or options['Sensitivity']:
                sensitivity_vec = np.nan_to_num(self.sensitivity_func(input_vec, param).full().flatten())
            if options['PredictionInterval']:
                stddev = np.sqrt(sensitivity_vec @ covariance_matrix @ sensitivity_vec)
                lower_list.append(max(fraction - stddev_multiplier*stddev, 0.0))
                upper_list.append(min(fraction + stddev_multiplier*stddev, 1.0))
            if options['Sensitivity']:
                for p in range(self.num_param):
                    sensitivity_lists[p].append(sensitivity_vec[p])

        output_data = input_struct[self.input_name_list].copy()
        output_data.columns = pd.MultiIndex.from_product([['Inputs'], self.input_name_list])
        output_data['Prediction','Probit'] = probit_list
        output_data['Prediction','Fraction'] = fraction_list
        if options['PredictionInterval']:
            output_data['Prediction','Lower'] = lower_list
            output_data['Prediction','Upper'] = upper_list
        if options['Sensitivity']:
            for p in range(self.num_param):
                output_data['Sensitivity',self.param_name_list[p]] = sensitivity_lists[p]

        return output_data

    def sample(self, design, param, design_replicates=1, options={}):
        """A function for generating simulated germination data for a given design.

        The true germination fraction is computed at each design row with the passed parameters
        and then perturbed with one of three noise processes, see the "Noise" option.

        Args:
            design (dataframe): A dataframe with a column for each model input, and optionally a
                'Replicates' column giving the number of times each row is observed.
            param (array-like, floats): The parameter values used to generate the data.
            design_replicates (integer, optional): The number of dataset replicates to be
                generated. The default is 1.
            options (dict, optional): A dictionary of user-defined options, possible key-value pairs
                include:

                "Noise" --
                Purpose: Selects the noise process added to the simulated germination,
                Type: string,
                Default Value: "Normal",
                Possible Values:
                "Normal" = additive Gaussian noise on the fraction, clipped to [0,1],
                "Binomial" = independent binomial counts of SeedNumber seeds at each row,
                "Seeds" = a population of SeedNumber seeds per treatment, each with its own base
                water potential, giving cumulative counts that never decrease over time.

                "NoiseLevel" --
                Purpose: The standard deviation of the additive noise in "Normal" mode,
                Type: float,
                Default Value: 0.05,
                Possible Values: >=0

                "SeedNumber" --
                Purpose: The number of seeds observed at each row (or treatment),
                Type: integer,
                Default Value: 100,
                Possible Values: >0

                "Seed" --
                Purpose: Seeds the random number generator for reproducible datasets,
                Type: integer or None,
                Default Value: None

                "Verbose" --
                Purpose: Prints a progress bar while sampling several replicates,
                Type: bool,
                Default Value: False,
                Possible Values: True or False

        Returns:
            dataframe OR list of dataframes: The design rows with 'Germinated', 'Total' and
            'Fraction' columns appended. If design_replicates is >1 a list of such dataframes is
            returned.
        """
        default_options = \
          { 'Noise':        ['Normal',  lambda x: isinstance(x,str) and (x=='Normal' or x=='Binomial' or x=='Seeds')],
            'NoiseLevel':   [0.05,      lambda x: isinstance(x,float) and 0<=x],
            'SeedNumber':   [100,       lambda x: isinstance(x,int) and 0<x],
            'Seed':         [None,      lambda x: x is None or isinstance(x,int)],
            'Verbose':      [False,     lambda x: isinstance(x,bool)]}
        options=cp.deepcopy(options)
        for key in options.keys():
            if not key in default_options.keys():
                raise Exception('Invalid option key; '+key+'!')
            elif not default_options[key][1](options[key]):
                raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
        for key in default_options.keys():
            if not key in options.keys() :
                options[key] = default_options[key][0]
        if not len(param) == self.num_param:
            raise Exception('Parameter mismatch, there were; '+str(len(param))+', provided but; '+str(self.num_param)+' needed!')
        if not isinstance(design_replicates,int) or design_replicates<1:
            raise Exception('The number of design replicates must be a positive integer!')
        self.__check_columns(design, self.input_name_list)

        if 'Replicates' in design.columns:
            itemized_design = design.reindex(design.index.repeat(design['Replicates']))
            itemized_design = itemized_design.drop('Replicates',axis=1)
        else:
            itemized_design = design.copy()
        itemized_design = itemized_design[self.input_name_list].reset_index(drop=True)

        param = np.asarray(param, dtype=float)
        true_fraction = np.array([self.fraction_func(row.to_numpy(dtype=float), param).full().item()
                                  for index,row in itemized_design.iterrows()])
        seed_total = options['SeedNumber']
        rng = np.random.default_rng(options['Seed'])

        replicat_datasets = []
        if options['Verbose']:
            progress_counter=0
            progress_bar(progress_counter, design_replicates, prefix = 'Sampling Datasets:')
        for r in range(design_replicates):
            dataset = itemized_design.copy()
            if options['Noise']=='Normal':
                noisy_fraction = true_fraction + rng.normal(0, options['NoiseLevel'], size=len(true_fraction))
                fraction = np.clip(noisy_fraction, 0, 1)
                germinated = np.rint(fraction*seed_total).astype(int)
            elif options['Noise']=='Binomial':
                germinated = rng.binomial(seed_total, true_fraction)
                fraction = germinated/seed_total
            elif options['Noise']=='Seeds':
                germinated = self.__sample_seed_population(itemized_design, param, seed_total, rng)
                fraction = germinated/seed_total
            dataset['Germinated'] = germinated
            dataset['Total'] = seed_total
            dataset['Fraction'] = fraction
            replicat_datasets.append(dataset)
            if options['Verbose']:
                progress_counter += 1
                progress_bar(progress_counter, design_replicates, prefix = 'Sampling Datasets:')

        if design_replicates==1:
            return replicat_datasets[0]
        else:
            return replicat_datasets

    def fit(self, datasets, start_param=None, options={}):
        """ A function for fitting the threshold model by direct minimization of a distance function.

        The distance between the observed and predicted germination, summed over every row of a
        dataset, is minimized with respect to the biological parameters using IPOPT via Casadi's
        nlpsol interface. Parameters are bounded to their biologically meaningful ranges. This
        function can also return asymptotic confidence intervals computed from the nonlinear
        least-squares linearization at the optimum.

        Args:
            datasets (dataframe OR list of dataframes): A dataframe containing the model inputs and a
                'Fraction' column of observed cumulative germination fractions, OR a list of such
                dataframes, each fit separately.
            start_param (array-like, optional): An array of starting parameter values where the
                local fitting optimization should be started, defaults to the model's default_param.
            options (dict, optional): A dictionary of user-defined options, possible key-value pairs
                include:

                "Distance" --
                Purpose: Selects the scale on which residuals are computed,
                Type: string,
                Default Value: "Fraction",
                Possible Values:
                "Fraction" = sum of squared residuals of the germination fraction,
                "Probit" = sum of squared residuals of the probit, rows with a fraction of 0 or 1
                are dropped.

                "Confidence" --
                Purpose: Determines if confidence intervals are returned,
                Type: string,
                Default Value: "None",
                Possible Values: "None" or "Intervals"

                "ConfidenceLevel" --
                Purpose: Sets the confidence level for the intervals,
                Type: float,
                Default Value: 0.95,
                Possible Values: 0<1.

                "InitParamBounds" --
                Purpose: Bounds for a crude grid search of starting parameters, one (lower, upper)
                pair per parameter,
                Type: array-like
                Default Value: False

                "InitSearchNumber" --
                Purpose: The number of grid points per parameter in the starting search,
                Type: integer
                Default Value: 3
                Possible Values: >0

                "Verbose" --
                Purpose: Prints a progress bar and solver warnings,
                Type: boolean
                Default Value: True
                Possible Values: True or False

        Return:
            dataframe: A dataframe with a two level column index, ('Estimate', parameter) and, if
            intervals are requested, ('Lower', parameter) and ('Upper', parameter). Each row
            corresponds to the dataset index in the passed list.
        """
        default_options = \
          { 'Distance':         ['Fraction',            lambda x: isinstance(x,str) and (x=='Fraction' or x=='Probit')],
            'Confidence':       ['None',                lambda x: isinstance(x,str) and (x=='None' or x=='Intervals')],
            'ConfidenceLevel':  [0.95,                  lambda x: isinstance(x,float) and 0<x and x<1],
            'InitParamBounds':  [False,                 lambda x: isinstance(x,list) or isinstance(x,np.ndarray)],
            'InitSearchNumber': [3,                     lambda x: isinstance(x,int) and 0<x],
            'Verbose':          [True,                  lambda x: isinstance(x,bool)]}
        options=cp.deepcopy(options)
        for key in options.keys():
            if not key in default_options.keys():
                raise Exception('Invalid option key; '+key+'!')
            elif not default_options[key][1](options[key]):
                raise Exception('Invalid value; '+str(options[key])+', passed for option key; '+key+'!')
        for key in default_options.keys():
            if not key in options.keys() :
                options[key] = default_options[key][0]
        if start_param is None:
            start_param = self.default_param
        if not len(start_param) == self.num_param:
            raise Exception('Starting parameter mismatch, there were; '+str(len(start_param))+', provided but; '+str(self.num_param)+' needed!')
        if options['InitParamBounds'] is not False and not len(options['InitParamBounds']) == self.num_param:
            raise Exception('InitParamBounds needs a (lower, upper) pair for each of the '+str(self.num_param)+' parameters!')

        if isinstance(datasets, pd.DataFrame):
            replicat_datasets = [datasets]
        else:
            replicat_datasets = datasets
        num_datasets = len(replicat_datasets)
        interval_bool = options['Confidence']=='Intervals'

        if options['Verbose']:
            progress_counter=0
            progress_bar(progress_counter, num_datasets, prefix = 'Fitting Dataset(s):')

        fit_param_list, bound_list = [], []
        for r in range(num_datasets):
            dataset = replicat_datasets[r]
            self.__check_columns(dataset, self.input_name_list+['Fraction'])
            if (dataset['Time'] <= 0).any():
                raise Exception('Germination times must be strictly positive!')
            input_matrix = dataset[self.input_name_list].to_numpy(dtype=float)
            observ_vec = dataset['Fraction'].to_numpy(dtype=float)
            if options['Distance']=='Probit':
                keep = (observ_vec>0) & (observ_vec<1)
                input_matrix, observ_vec = input_matrix[keep], st.norm.ppf(observ_vec[keep])
            if len(observ_vec) < self.num_param:
                raise Exception('Dataset '+str(r)+' has fewer usable observations than parameters!')

            if self.symbolics_boolean:
                fit_param_symbols = cs.SX.sym('fit_param_symbols_'+str(r), self.num_param)
            else:
                fit_param_symbols = cs.MX.sym('fit_param_symbols_'+str(r), self.num_param)
            #residual vector between observed and predicted germination
            residual_list = []
            for i in range(len(observ_vec)):
                if options['Distance']=='Fraction':
                    prediction_symbol = self.fraction_func(input_matrix[i], fit_param_symbols)
                else:
                    prediction_symbol = self.probit_func(input_matrix[i], fit_param_symbols)
                residual_list.append(observ_vec[i] - prediction_symbol)
            residual_symbol = cs.vertcat(*residual_list)
            distance_symbol = cs.sumsqr(residual_symbol)
            distance_func = cs.Function('distance_func_'+str(r), [fit_param_symbols], [distance_symbol])

            lower_bounds, upper_bounds = self.__param_bounds(dataset)
            init_param = np.clip(np.asarray(start_param, dtype=float), lower_bounds, upper_bounds)
            #crude grid search of staring parameters, if requested in options
            if options['InitParamBounds'] is not False:
                candidate_list = [np.linspace(bnds[0],bnds[1],options['InitSearchNumber'])
                                    for bnds in options['InitParamBounds']]
                distance_value = distance_func(init_param).full().item()
                for candidate in it.product(*candidate_list):
                    candidate = np.clip(np.array(candidate), lower_bounds, upper_bounds)
                    new_distance_value = distance_func(candidate).full().item()
                    if np.isfinite(new_distance_value) and not new_distance_value >= distance_value:
                        init_param = candidate
                        distance_value = new_distance_value

            distance_optim_struct = {'f': distance_symbol, 'x': fit_param_symbols}
            fitting_solver = cs.nlpsol('solver', 'ipopt', distance_optim_struct,
                                       {'ipopt.print_level':0, 'print_time':False, 'ipopt.sb':'yes'})
            with silence_stdout():
                solution = fitting_solver(x0=init_param, lbx=lower_bounds, ubx=upper_bounds)
            fit_param = solution['x'].full().flatten()
            if options['Verbose'] and not fitting_solver.stats()['success']:
                print('Warning: IPOPT did not converge for dataset '+str(r)+'; '
                      +str(fitting_solver.stats()['return_status']))
            fit_param_list.append(fit_param)

            if interval_bool:
                residual_func = cs.Function('residual_func_'+str(r), [fit_param_symbols],
                                            [residual_symbol, cs.jacobian(residual_symbol, fit_param_symbols)])
                bound_list.append(self.__least_squares_intervals(residual_func, fit_param, options))

            if options['Verbose']:
                progress_counter += 1
                progress_bar(progress_counter, num_datasets, prefix = 'Fitting Dataset(s):')

        if interval_bool:
            column_index = pd.MultiIndex.from_product([['Estimate','Lower','Upper'],self.param_name_list],names=['Value', 'Parameter'])
            param_output_matrix = np.concatenate([np.stack(fit_param_list), np.stack(bound_list)], axis=1)
        else:
            column_index = pd.MultiIndex.from_product([['Estimate'],self.param_name_list],names=['Value', 'Parameter'])
            param_output_matrix = np.stack(fit_param_list)
        param_data = pd.DataFrame(param_output_matrix, columns=column_index)
        return param_data

# --------------- Private functions (for constructor) ----------------------------------------------

    def __get_model_functions(self):
        """ A private function that generates the casadi function attributes of the model.

        The threshold term is the covariate combination that the seed's base water potential must
        lie below for it to have germinated by time t; the probit standardizes it by the population
        distribution of base water potentials.

        Returns:
            list of functions: Casadi functions for the probit, the germination fraction and the
            gradient of the fraction with respect to the parameters, in that order.
        """
        if self.symbolics_boolean:
            param_symbols = cs.SX.sym('param_symbols', self.num_param)
            input_symbols = cs.SX.sym('input_symbols', self.num_input)
        else:
            param_symbols = cs.MX.sym('param_symbols', self.num_param)
            input_symbols = cs.MX.sym('input_symbols', self.num_input)

        if self.model_type == 'Hydrotime':
            water_potential, time = input_symbols[0], input_symbols[1]
            theta, psi_b50, sigma_psi_b = param_symbols[0], param_symbols[1], param_symbols[2]
            time_scale = time
        elif self.model_type == 'HydrothermalTime':
            water_potential, temperature, time = input_symbols[0], input_symbols[1], input_symbols[2]
            theta, psi_b50, sigma_psi_b = param_symbols[0], param_symbols[1], param_symbols[2]
            base_temperature = param_symbols[3]
            time_scale = (temperature - base_temperature)*time
        #no germination before time zero or at or below the base temperature
        threshold_symbol = cs.if_else(time_scale > 0, water_potential - theta/time_scale, -np.inf)
        probit_symbol = (threshold_symbol - psi_b50)/sigma_psi_b
        fraction_symbol = 0.5*(1 + cs.erf(probit_symbol/np.sqrt(2)))
        sensitivity_symbol = cs.jacobian(fraction_symbol, param_symbols)

        probit_func = cs.Function('probit_'+self.model_type, [input_symbols, param_symbols], [probit_symbol])
        fraction_func = cs.Function('fraction_'+self.model_type, [input_symbols, param_symbols], [fraction_symbol])
        sensitivity_func = cs.Function('sensitivity_'+self.model_type, [input_symbols, param_symbols], [sensitivity_symbol])

        return [probit_func, fraction_func, sensitivity_func]

# --------------- Private functions (used by public functions) -------------------------------------

    def __param_bounds(self, dataset):
        """ A private helper returning the lower and upper optimization bounds of the parameters.

        The time constant is non-negative, the spread of base water potentials is strictly
        positive and the base temperature must lie below every temperature in the dataset.
        """
        lower_bounds = [-np.inf]*self.num_param
        upper_bounds = [np.inf]*self.num_param
        lower_bounds[0] = 0.0
        lower_bounds[2] = 1e-6
        if self.model_type == 'HydrothermalTime':
            upper_bounds[3] = dataset['Temperature'].min() - 1e-3
        return np.array(lower_bounds), np.array(upper_bounds)

    def __least_squares_intervals(self, residual_func, fit_param, options):
        """ A private helper function computing asymptotic confidence intervals for a least-squares
        fit.

        The parameter covariance is approximated by s^2 (J^T J)^-1 where J is the jacobian of the
        residual vector at the optimum and s^2 the residual variance, and the intervals use the
        Student t quantile with n-p degrees of freedom.

        Args:
            residual_func: A casadi function returning the residual vector and its jacobian at a
                putative parameter vector.
            fit_param (array-like, floats): The fitted parameter vector.
            options (dictionary): The options passed through from fit().

        Returns:
            array: A flat array of the lower bounds followed by the upper bounds of each parameter.
        """
        [residual, jacobian] = residual_func(fit_param)
        residual = residual.full().flatten()
        jacobian = jacobian.full()
        degrees_freedom = len(residual) - self.num_param
        if degrees_freedom < 1:
            raise Exception('Confidence intervals need more observations than parameters!')
        residual_variance = residual @ residual / degrees_freedom
        covariance_matrix = residual_variance*np.linalg.pinv(jacobian.T @ jacobian)
        stderr = np.sqrt(np.abs(np.diag(covariance_matrix)))
        quantile = st.t.ppf(0.5 + options['ConfidenceLevel']/2, degrees_freedom)
        return np.concatenate([fit_param - quantile*stderr, fit_param + quantile*stderr])

    def __sample_seed_population(self, itemized_design, param, seed_total, rng):
        """ A private helper simulating cumulative germination counts from individual seeds.

        Rows sharing all inputs except time form one treatment; repeated rows of a treatment are
        numbered so that each replicate of a treatment is its own seed lot. Each seed lot draws
        seed_total base water potentials from N(PsiB50, SigmaPsiB); a seed has germinated at a
        row if its base water potential lies below the row's threshold value.
        """
        psi_b50, sigma_psi_b = param[1], param[2]
        treatment_names = [name for name in self.input_name_list if not name=='Time']
        germinated = np.zeros(len(itemized_design), dtype=int)
        #nth repeat of an identical row belongs to the nth seed lot of its treatment
        replicate_index = itemized_design.groupby(self.input_name_list, sort=False).cumcount()
        lot_keys = [itemized_design[name] for name in treatment_names] + [replicate_index]
        for seed_lot, group in itemized_design.groupby(lot_keys, sort=False):
            base_potentials = rng.normal(psi_b50, sigma_psi_b, size=seed_total)
            for index,row in group.iterrows():
                #probit*sigma + median recovers the threshold value
                probit = self.probit_func(row.to_numpy(dtype=float), param).full().item()
                threshold = psi_b50 + sigma_psi_b*probit
                germinated[index] = np.sum(base_potentials <= threshold)
        return germinated

    def __check_columns(self, data, column_names):
        """ A private helper raising an error if a dataframe is missing required columns."""
        missing = [name for name in column_names if not name in data.columns]
        if missing:
            raise Exception('Dataframe is missing required column(s); '+', '.join(missing)+'!')


def create_grid(candidates):
    """A function to create a full factorial design from lists of candidate input levels.

    Args:
        candidates (dictionary): A dictionary mapping each input name to an array-like of levels.

    Returns:
        dataframe: A dataframe with a column per input and a row for each combination of levels,
        ordered with the last input varying fastest.
    """
    names = list(candidates.keys())
    levels = [list(candidates[name]) for name in names]
    return pd.DataFrame(list(it.product(*levels)), columns=names)


def progress_bar(iteration, total, prefix = ''):
    """A helper function to print a progress bar in a looped process

    Args:
        iteration (integer): Current iteration in the process
        total (integer): Total number of iterations in the process
        prefix (string): A prefix string to name the process
    """
    max_length= 50
    percent = ("{0:.1f}").format(100 * (iteration / float(total)))
    filled_length = int(max_length * iteration // total)
    bar = '#' * filled_length + '-' * (max_length - filled_length)
    print('\r%s |%s| %s%%' % (prefix, bar, percent), end = "\r")
    if iteration == total:
        print()


@contextmanager
def silence_stdout():
    old_target = sys.stdout
    try:
        with open(os.devnull, "w") as new_target:
            sys.stdout = new_target
            yield new_target
    finally:
        sys.stdout = old_target
